"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from fire_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_stats_computed(
    request_id: str,
    scope_key: str,
    income_confidence: str,
    expense_confidence: str,
    unavailable_currencies: list[str],
    duration_ms: float,
) -> None:
    """Log structured stats outcome for analysis"""
    logging.info(
        "Financial stats computed",
        extra={
            "request_id": request_id,
            "scope": scope_key,
            "step": "stats_complete",
            "income_confidence": income_confidence,
            "expense_confidence": expense_confidence,
            "unavailable_currencies": unavailable_currencies,
            "duration_ms": duration_ms,
        },
    )


def log_runway_projection(
    request_id: str,
    scope_key: str,
    status: str,
    runway_years: int | None,
    duration_ms: float,
) -> None:
    """Log structured runway outcome for analysis"""
    logging.info(
        "Runway projection completed",
        extra={
            "request_id": request_id,
            "scope": scope_key,
            "step": "runway_complete",
            "runway_status": status,
            "runway_years": runway_years,
            "duration_ms": duration_ms,
        },
    )
