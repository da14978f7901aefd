"""
Deployment directory - where each network's ledger lives

A JSON file maps network IDs to ledger locators:

    {"networks": {"1337": {"SupplyLedger": {"address": "ledgers/dev.db"}}}}

Clients look up the locator for the network they are connected to instead
of hard-coding it. For this implementation the locator is the SQLite path
of the ledger's event log.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field

from supply_ledger.kernel.errors import DeploymentNotFound
from supply_ledger.kernel.logging import get_logger

logger = get_logger(__name__)

LEDGER_CONTRACT_NAME = "SupplyLedger"


class DeploymentEntry(BaseModel):
    address: str = Field(min_length=1)


class DeploymentFile(BaseModel):
    """On-disk shape of the deployment directory"""

    networks: dict[str, dict[str, DeploymentEntry]] = Field(default_factory=dict)


class DeploymentDirectory:
    """
    Read/write access to a deployments JSON file

    A missing file behaves as an empty directory; record() creates it.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> DeploymentFile:
        if not self.path.exists():
            return DeploymentFile()
        return DeploymentFile.model_validate(json.loads(self.path.read_text()))

    def networks(self) -> dict[str, str]:
        """Network ID → ledger locator, for every network with a ledger"""
        return {
            network_id: contracts[LEDGER_CONTRACT_NAME].address
            for network_id, contracts in sorted(self._load().networks.items())
            if LEDGER_CONTRACT_NAME in contracts
        }

    def record(self, network_id: str, address: str) -> None:
        """
        Record (or overwrite) the ledger locator for a network

        Entries for other contracts on the same network are preserved.
        """
        directory = self._load()
        contracts = directory.networks.setdefault(str(network_id), {})
        contracts[LEDGER_CONTRACT_NAME] = DeploymentEntry(address=address)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(directory.model_dump(mode="json"), indent=2) + "\n")
        logger.info("Deployment recorded", network_id=str(network_id), path=str(self.path))

    def resolve(self, network_id: str) -> str:
        """
        Locator of the ledger deployed on a network

        Raises:
            DeploymentNotFound: If nothing is recorded for network_id
        """
        networks = self.networks()
        locator = networks.get(str(network_id))
        if locator is None:
            raise DeploymentNotFound(str(network_id), list(networks))
        return locator
