"""Simulation kernel: catalog, forces, collisions, ledger and engine."""
