"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers and the CLI.
"""

from stockledger.application.services import (
    get_conversion_coordinator,
    get_current_value_projection,
    get_fifo_engine,
    get_ledger_service,
    get_projection_refresher,
    get_summary_reconciler,
    reset_services,
)

__all__ = [
    "get_current_value_projection",
    "get_projection_refresher",
    "get_fifo_engine",
    "get_ledger_service",
    "get_conversion_coordinator",
    "get_summary_reconciler",
    "reset_services",
]
