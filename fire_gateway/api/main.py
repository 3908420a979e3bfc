"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fire_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fire_gateway.api.v1 import debts, flow_freedom, runway, stats
from fire_gateway.infrastructure.cache.rate_cache import RateCache
from fire_gateway.infrastructure.cache.stats_cache import StatsCache
from fire_gateway.infrastructure.clients.market import MarketDataClient
from fire_gateway.infrastructure.clients.rates import ExchangeRateClient
from fire_gateway.infrastructure.observability.logging import setup_logging
from fire_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="FIRE Gateway",
        description="Financial statistics, runway and Flow Freedom projections",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Process-wide caches, shared by every request
    app.state.rate_cache = RateCache(ExchangeRateClient().fetch_current_rates)
    app.state.stats_cache = StatsCache(ttl_seconds=settings.stats_cache_ttl_seconds)
    app.state.market_client = MarketDataClient()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(stats.router, prefix="/v1", tags=["stats"])
    app.include_router(runway.router, prefix="/v1", tags=["runway"])
    app.include_router(flow_freedom.router, prefix="/v1", tags=["flow-freedom"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])

    return app


app = create_app()
