"""Prometheus metrics for cache effectiveness, upstream fetches and projection outcomes"""

from prometheus_client import Counter, Histogram

# Exchange rate metrics
rate_cache_counter = Counter(
    "fire_rate_cache_lookups_total",
    "Exchange rate cache lookups",
    ["result"],  # hit | miss | shared
)

rate_fetch_counter = Counter(
    "fire_rate_fetch_total",
    "Upstream exchange rate fetches",
    ["outcome"],  # success | failure
)

rate_fetch_latency_histogram = Histogram(
    "fire_rate_fetch_latency_seconds",
    "Exchange rate source response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Market data metrics
market_fetch_failures_counter = Counter(
    "fire_market_fetch_failures_total",
    "Failed market data calls",
)

# Stats metrics
stats_cache_counter = Counter(
    "fire_stats_cache_lookups_total",
    "Financial stats cache lookups",
    ["result"],  # hit | miss | shared
)

stats_confidence_counter = Counter(
    "fire_stats_confidence_total",
    "Confidence levels of computed stats",
    ["series", "confidence"],  # series: passive_income | expenses
)

# Projection metrics
runway_counter = Counter(
    "fire_runway_projection_total",
    "Runway projections computed",
    ["status"],  # depleted | exceeds_horizon
)

runway_years_bucket_counter = Counter(
    "fire_runway_years_bucket",
    "Finite runway lengths by bucket",
    ["bucket"],  # <5y, 5-20y, 20-50y, 50y+
)

non_amortizing_debt_counter = Counter(
    "fire_non_amortizing_debt_total",
    "Debts whose payment does not cover interest",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_rate_cache_lookup(result: str) -> None:
    rate_cache_counter.labels(result=result).inc()


def record_stats_confidence(income_confidence: str, expense_confidence: str) -> None:
    stats_confidence_counter.labels(series="passive_income", confidence=income_confidence).inc()
    stats_confidence_counter.labels(series="expenses", confidence=expense_confidence).inc()


def record_runway(status: str, runway_years: int | None) -> None:
    """Record runway outcome and bucket finite runway lengths for distribution analysis"""
    runway_counter.labels(status=status).inc()

    if runway_years is None:
        return

    if runway_years < 5:
        bucket = "<5y"
    elif runway_years < 20:
        bucket = "5-20y"
    elif runway_years < 50:
        bucket = "20-50y"
    else:
        bucket = "50y+"

    runway_years_bucket_counter.labels(bucket=bucket).inc()
