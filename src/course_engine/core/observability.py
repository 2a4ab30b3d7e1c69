"""
Observability module for Course Engine.
Implements connection checks, sync/answer metrics and structured logging.
"""

import logging
from typing import Any, Optional

import httpx
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from course_engine.core.config import get_settings

logger = logging.getLogger(__name__)

REGISTRY = CollectorRegistry()

# Prometheus metrics
SYNC_ATTEMPTS = Counter(
    "sync_attempts_total", "Attempts made against the remote service", ["operation"], registry=REGISTRY
)
SYNC_FAILURES = Counter(
    "sync_failures_total",
    "Sync operations that failed after retries",
    ["operation", "kind"],
    registry=REGISTRY,
)
SYNC_DURATION = Histogram(
    "sync_duration_seconds", "Sync operation duration, retries included", ["operation"], registry=REGISTRY
)
ANSWERS_RECORDED = Counter(
    "answers_recorded_total", "Answers recorded by progress trackers", ["outcome"], registry=REGISTRY
)


class ObservabilityService:
    """Service for managing observability features."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    async def check_connection(
        self, client: httpx.AsyncClient, base_url: str, headers: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        """
        Probe the remote service with a one-row course query.
        Never raises; the result says whether the service answered.
        """
        try:
            response = await client.get(
                f"{base_url}/courses", params={"select": "id", "limit": "1"}, headers=headers
            )
            elapsed_ms = int(response.elapsed.total_seconds() * 1000)
            if response.status_code == 200:
                logger.info("Connection status check: OK")
                return {"healthy": True, "response_time_ms": elapsed_ms}
            logger.warning(f"Connection status check failed: HTTP {response.status_code}")
            return {
                "healthy": False,
                "error": f"HTTP {response.status_code}",
                "response_time_ms": elapsed_ms,
            }
        except Exception as e:
            logger.error(f"Connection status check failed: {e}")
            return {"healthy": False, "error": str(e), "response_time_ms": None}

    def record_sync_attempt(self, operation: str):
        """Record one attempt of a sync operation."""
        if self.enabled:
            SYNC_ATTEMPTS.labels(operation=operation).inc()

    def record_sync_failure(self, operation: str, kind: str):
        """Record a sync operation that gave up."""
        if self.enabled:
            SYNC_FAILURES.labels(operation=operation, kind=kind).inc()

    def record_sync_duration(self, operation: str, duration: float):
        """Record how long a sync operation took."""
        if self.enabled:
            SYNC_DURATION.labels(operation=operation).observe(duration)

    def record_answer(self, outcome: str):
        """Record an answer outcome: correct, incorrect or skipped."""
        if self.enabled:
            ANSWERS_RECORDED.labels(outcome=outcome).inc()

    def metrics_snapshot(self) -> str:
        """Metrics in Prometheus exposition format."""
        return generate_latest(REGISTRY).decode("utf-8")


# Global observability service instance, built on first use
_observability_service: Optional[ObservabilityService] = None


def get_observability_service() -> ObservabilityService:
    """Get observability service instance."""
    global _observability_service
    if _observability_service is None:
        _observability_service = ObservabilityService(enabled=get_settings().enable_metrics)
    return _observability_service


def get_structured_logger(level: Optional[str] = None) -> logging.Logger:
    """Get structured logger for JSON logging."""
    logger = logging.getLogger("course_engine")

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    if level:
        logger.setLevel(level.upper())

    return logger
