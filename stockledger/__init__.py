"""Inventory movement ledger, FIFO costing and monthly reconciliation."""
