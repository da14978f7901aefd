"""CLI module for the supply ledger"""
