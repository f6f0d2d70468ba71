"""API route modules."""

from stockledger.api.routes.conversions import router as conversions_router
from stockledger.api.routes.current_values import router as current_values_router
from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.movements import router as movements_router
from stockledger.api.routes.production import router as production_router
from stockledger.api.routes.summaries import router as summaries_router

__all__ = [
    "health_router",
    "movements_router",
    "conversions_router",
    "production_router",
    "summaries_router",
    "current_values_router",
]
