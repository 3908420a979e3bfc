"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session

from fire_gateway.domain.models import OwnershipScope
from fire_gateway.infrastructure.cache.rate_cache import RateCache
from fire_gateway.infrastructure.cache.stats_cache import StatsCache
from fire_gateway.infrastructure.clients.market import MarketDataClient
from fire_gateway.infrastructure.database.repositories import FinanceRepository
from fire_gateway.infrastructure.database.session import get_db
from fire_gateway.services.projection import ProjectionService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_scope(
    user_id: str = Query(..., min_length=1, description="Authenticated user identifier"),
    scope_id: str | None = Query(None, description="Ownership scope (family id), defaults to the user"),
) -> OwnershipScope:
    """Ownership scope; authorization happens upstream"""
    return OwnershipScope(user_id=user_id, belong_id=scope_id or user_id)


def get_rate_cache(request: Request) -> RateCache:
    """Process-wide rate cache owned by the app"""
    return request.app.state.rate_cache


def get_stats_cache(request: Request) -> StatsCache:
    """Process-wide stats cache owned by the app"""
    return request.app.state.stats_cache


def get_market_client(request: Request) -> MarketDataClient:
    """Provide market data client instance"""
    return request.app.state.market_client


def get_projection_service(
    db: Session = Depends(get_db),
    rate_cache: RateCache = Depends(get_rate_cache),
    stats_cache: StatsCache = Depends(get_stats_cache),
    market_client: MarketDataClient = Depends(get_market_client),
) -> ProjectionService:
    """Provide projection service bound to this request's session"""
    return ProjectionService(
        repository=FinanceRepository(db),
        rate_cache=rate_cache,
        stats_cache=stats_cache,
        market_client=market_client,
    )
