"""
Supply Ledger CLI

Command-line interface for a supply ledger: participant registration,
product lifecycle, reporting and the deployment directory.

Usage:
    supply-ledger init --db ledger.db --owner 0xOwner
    supply-ledger role register supplier --address 0xSup --name "Acme" --place Pilbara --as 0xOwner
    supply-ledger product create --name Widget --description "Blue widget" --as 0xShop
    supply-ledger product supply --id 1 --as 0xSup
    supply-ledger product show --id 1
    supply-ledger summary --json
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from supply_ledger.deployments import DeploymentDirectory
from supply_ledger.facade import SupplyLedger
from supply_ledger.kernel.errors import LedgerError
from supply_ledger.kernel.ids import generate_id
from supply_ledger.kernel.logging import configure_logging, is_production, set_correlation_id
from supply_ledger.kernel.settings import LedgerSettings
from supply_ledger.ledger.models import STAGE_LABELS, Product, RoleKind, RoleRecord

_settings = LedgerSettings.from_env()

# Logs go to stderr so stdout stays clean for --json output
configure_logging(
    json_output=_settings.json_logs or is_production(),
    log_level=_settings.log_level,
)

app = typer.Typer(
    name="supply-ledger",
    help="Supply Ledger - custody tracking for manufactured goods",
    add_completion=False,
)

# Sub-apps
role_app = typer.Typer(help="Participant registry commands")
product_app = typer.Typer(help="Product lifecycle commands")
deployment_app = typer.Typer(help="Deployment directory commands")

app.add_typer(role_app, name="role")
app.add_typer(product_app, name="product")
app.add_typer(deployment_app, name="deployment")

# Shared options
DbOption = Annotated[Optional[Path], typer.Option("--db", help="Database path")]
NetworkOption = Annotated[
    Optional[str],
    typer.Option("--network", help="Network ID to resolve through the deployment directory"),
]
DeploymentsOption = Annotated[
    Optional[Path],
    typer.Option("--deployments", help="Deployment directory (JSON)"),
]
CallerOption = Annotated[str, typer.Option("--as", help="Identity issuing the call")]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON")]


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Turn ledger rejections into an error line and exit code 1"""
    try:
        yield
    except (LedgerError, ValidationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def resolve_db_path(
    db: Optional[Path] = None,
    network: Optional[str] = None,
    deployments: Optional[Path] = None,
) -> Path:
    """
    Work out which ledger a command targets

    An explicit --network wins over --db; either falls back to the
    SUPPLY_LEDGER_* environment settings.
    """
    settings = LedgerSettings.from_env(
        db_path=db, network_id=network, deployments_path=deployments
    )
    if network is not None or (db is None and settings.network_id is not None):
        directory = DeploymentDirectory(settings.deployments_path)
        return Path(directory.resolve(str(settings.network_id)))
    return settings.db_path


def get_ledger(
    db: Optional[Path] = None,
    network: Optional[str] = None,
    deployments: Optional[Path] = None,
) -> SupplyLedger:
    """Open an existing ledger"""
    set_correlation_id(generate_id("cli"))
    with reporting_errors():
        path = resolve_db_path(db, network, deployments)
    if not path.exists():
        typer.echo(f"Error: Database not found: {path}", err=True)
        typer.echo(
            f"Run 'supply-ledger init --db {path} --owner <identity>' to initialize",
            err=True,
        )
        raise typer.Exit(1)
    with reporting_errors():
        return SupplyLedger(path)


def dump(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def echo_role(record: RoleRecord) -> None:
    typer.echo(f"  {record.kind.value} #{record.id}: {record.name}")
    typer.echo(f"    Address: {record.address}")
    typer.echo(f"    Place: {record.place}")


def echo_product(product: Product) -> None:
    typer.echo(f"  Product #{product.id}: {product.name}")
    typer.echo(f"    Description: {product.description}")
    typer.echo(f"    Stage: {product.stage_label}")
    for kind in RoleKind:
        role_id = product.role_id_for(kind)
        if role_id is not None:
            typer.echo(f"    {kind.value.capitalize()}: #{role_id}")


# Initialization command


@app.command()
def init(
    owner: Annotated[str, typer.Option("--owner", help="Identity that will own the ledger")],
    db: DbOption = None,
    network: Annotated[
        Optional[str],
        typer.Option("--network", help="Also record the ledger under this network ID"),
    ] = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Initialize a new ledger database"""
    settings = LedgerSettings.from_env(db_path=db, deployments_path=deployments)
    path = settings.db_path
    if path.exists():
        typer.echo(f"Error: Database already exists: {path}", err=True)
        raise typer.Exit(1)

    with reporting_errors():
        SupplyLedger(path, owner=owner)
    typer.echo(f"✓ Initialized supply ledger: {path}")
    typer.echo(f"  Owner: {owner}")

    if network is not None:
        DeploymentDirectory(settings.deployments_path).record(network, str(path))
        typer.echo(f"  Recorded for network {network} in {settings.deployments_path}")


# Role commands


@role_app.command("register")
def role_register(
    kind: Annotated[RoleKind, typer.Argument(help="Role catalog")],
    address: Annotated[str, typer.Option("--address", help="Participant identity")],
    name: Annotated[str, typer.Option("--name", help="Participant name")],
    place: Annotated[str, typer.Option("--place", help="Participant location")],
    caller: CallerOption,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Register a participant (owner only)"""
    ledger = get_ledger(db, network, deployments)

    with reporting_errors():
        role_id = ledger.register_role(kind, address, name, place, caller=caller)

    typer.echo(f"✓ Registered {kind.value} #{role_id}: {name}")
    typer.echo(f"  Address: {address}")
    typer.echo(f"  Place: {place}")


@role_app.command("list")
def role_list(
    kind: Annotated[RoleKind, typer.Argument(help="Role catalog")],
    json_output: JsonOption = False,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """List the participants registered in a role"""
    ledger = get_ledger(db, network, deployments)
    records = ledger.list_roles(kind)

    if json_output:
        dump([r.model_dump(mode="json") for r in records])
        return

    if not records:
        typer.echo(f"No {kind.value}s registered")
        return

    typer.echo(f"Registered {kind.value}s ({len(records)}):")
    for record in records:
        echo_role(record)


@role_app.command("show")
def role_show(
    kind: Annotated[RoleKind, typer.Argument(help="Role catalog")],
    role_id: Annotated[int, typer.Option("--id", help="Record ID")],
    json_output: JsonOption = False,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Show one participant record"""
    ledger = get_ledger(db, network, deployments)

    with reporting_errors():
        record = ledger.role_record(kind, role_id)

    if json_output:
        dump(record.model_dump(mode="json"))
    else:
        echo_role(record)


# Product commands


@product_app.command("create")
def product_create(
    name: Annotated[str, typer.Option("--name", help="Product name")],
    description: Annotated[str, typer.Option("--description", help="Product description")],
    caller: CallerOption,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Order a new product"""
    ledger = get_ledger(db, network, deployments)

    with reporting_errors():
        product_id = ledger.create_product(name, description, caller=caller)

    typer.echo(f"✓ Created product #{product_id}: {name}")
    typer.echo(f"  Stage: {ledger.stage_label(product_id)}")


def advance(
    operation: str,
    product_id: int,
    caller: str,
    db: Optional[Path],
    network: Optional[str],
    deployments: Optional[Path],
) -> None:
    ledger = get_ledger(db, network, deployments)

    with reporting_errors():
        product = getattr(ledger, operation)(product_id, caller=caller)

    typer.echo(f"✓ Product #{product.id}: {product.stage_label}")


@product_app.command("supply")
def product_supply(
    product_id: Annotated[int, typer.Option("--id", help="Product ID")],
    caller: CallerOption,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Supply raw material for a product (registered supplier)"""
    advance("supply_raw_material", product_id, caller, db, network, deployments)


@product_app.command("manufacture")
def product_manufacture(
    product_id: Annotated[int, typer.Option("--id", help="Product ID")],
    caller: CallerOption,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Manufacture a product (registered manufacturer)"""
    advance("manufacture", product_id, caller, db, network, deployments)


@product_app.command("distribute")
def product_distribute(
    product_id: Annotated[int, typer.Option("--id", help="Product ID")],
    caller: CallerOption,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Distribute a product (registered distributor)"""
    advance("distribute", product_id, caller, db, network, deployments)


@product_app.command("retail")
def product_retail(
    product_id: Annotated[int, typer.Option("--id", help="Product ID")],
    caller: CallerOption,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Stock a product at retail (registered retailer)"""
    advance("retail", product_id, caller, db, network, deployments)


@product_app.command("sell")
def product_sell(
    product_id: Annotated[int, typer.Option("--id", help="Product ID")],
    caller: CallerOption,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Sell a product (the retailer that stocked it)"""
    advance("sell", product_id, caller, db, network, deployments)


@product_app.command("show")
def product_show(
    product_id: Annotated[int, typer.Option("--id", help="Product ID")],
    json_output: JsonOption = False,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Show a product with its stage timestamps"""
    ledger = get_ledger(db, network, deployments)

    with reporting_errors():
        product = ledger.product(product_id)
        timestamps = ledger.timestamps(product_id)

    if json_output:
        dump(
            {
                **product.model_dump(mode="json"),
                "stage_label": product.stage_label,
                "timestamps": timestamps.model_dump(mode="json"),
            }
        )
        return

    echo_product(product)
    for stage, instant in zip(STAGE_LABELS.values(), timestamps.entered()):
        typer.echo(f"    {stage}: {instant.isoformat()}")


@product_app.command("list")
def product_list(
    json_output: JsonOption = False,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """List all products"""
    ledger = get_ledger(db, network, deployments)
    products = ledger.list_products()

    if json_output:
        dump([p.model_dump(mode="json") for p in products])
        return

    if not products:
        typer.echo("No products")
        return

    typer.echo(f"Products ({len(products)}):")
    for product in products:
        typer.echo(f"  #{product.id}: {product.name} - {product.stage_label}")


@product_app.command("history")
def product_history(
    product_id: Annotated[int, typer.Option("--id", help="Product ID")],
    json_output: JsonOption = False,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Show the audit trail of a product"""
    ledger = get_ledger(db, network, deployments)

    with reporting_errors():
        events = ledger.history(product_id)

    if json_output:
        dump([e.model_dump(mode="json") for e in events])
        return

    typer.echo(f"History of product #{product_id} ({len(events)} events):")
    for event in events:
        typer.echo(f"  v{event.version} {event.occurred_at.isoformat()} {event.event_type}")
        typer.echo(f"    By: {event.actor_id}")


# Reporting


@app.command()
def summary(
    json_output: JsonOption = False,
    db: DbOption = None,
    network: NetworkOption = None,
    deployments: DeploymentsOption = None,
) -> None:
    """Show ledger totals, stage distribution and recent activity"""
    ledger = get_ledger(db, network, deployments)
    report = ledger.summary()

    if json_output:
        dump(
            {
                "product_count": report.product_count,
                "roles": {kind.value: n for kind, n in report.role_counts.items()},
                "stages": {
                    stage.name: n for stage, n in report.stage_distribution.items()
                },
                "sold": report.completion.sold,
                "in_progress": report.completion.in_progress,
                "activity": [
                    {"date": day.isoformat(), "count": n} for day, n in report.activity
                ],
            }
        )
        return

    typer.echo(f"Products: {report.product_count}")
    typer.echo(f"  Sold: {report.completion.sold}")
    typer.echo(f"  In progress: {report.completion.in_progress}")

    typer.echo("\nParticipants:")
    for kind, n in report.role_counts.items():
        typer.echo(f"  {kind.value}: {n}")

    typer.echo("\nStages:")
    for stage, n in report.stage_distribution.items():
        typer.echo(f"  {STAGE_LABELS[stage]}: {n}")

    if report.activity:
        typer.echo("\nRecent activity:")
        for day, n in report.activity:
            typer.echo(f"  {day.isoformat()}: {n}")


# Deployment directory commands


@deployment_app.command("record")
def deployment_record(
    network: Annotated[str, typer.Option("--network", help="Network ID")],
    address: Annotated[str, typer.Option("--address", help="Ledger database path")],
    deployments: DeploymentsOption = None,
) -> None:
    """Record where a network's ledger lives"""
    settings = LedgerSettings.from_env(deployments_path=deployments)
    DeploymentDirectory(settings.deployments_path).record(network, address)
    typer.echo(f"✓ Recorded network {network}: {address}")


@deployment_app.command("list")
def deployment_list(
    json_output: JsonOption = False,
    deployments: DeploymentsOption = None,
) -> None:
    """List networks with a recorded ledger"""
    settings = LedgerSettings.from_env(deployments_path=deployments)
    networks = DeploymentDirectory(settings.deployments_path).networks()

    if json_output:
        dump(networks)
        return

    if not networks:
        typer.echo("No deployments recorded")
        return

    typer.echo(f"Deployments ({len(networks)}):")
    for network_id, address in networks.items():
        typer.echo(f"  {network_id}: {address}")


@deployment_app.command("resolve")
def deployment_resolve(
    network: Annotated[str, typer.Option("--network", help="Network ID")],
    deployments: DeploymentsOption = None,
) -> None:
    """Print the ledger location recorded for a network"""
    settings = LedgerSettings.from_env(deployments_path=deployments)

    with reporting_errors():
        address = DeploymentDirectory(settings.deployments_path).resolve(network)

    typer.echo(address)


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
