"""Metrics service for tracking generation outcomes across calls."""

import logging
from collections import Counter
from typing import Any

from visionstudio.models.metrics import GenerationMetrics

logger = logging.getLogger(__name__)


class MetricsService:
    """
    In-memory record of generation metrics.

    Keeps every recorded entry for the lifetime of the process; ``clear()``
    resets it.
    """

    def __init__(self):
        self._metrics: list[GenerationMetrics] = []

    def record(self, metrics: GenerationMetrics) -> None:
        """Record the metrics of one generate call."""
        self._metrics.append(metrics)
        outcome = metrics.error_code.value if metrics.error_code else "OK"
        logger.debug(
            f"📊 [MetricsService] {metrics.model_used or 'unknown'}: {outcome} "
            f"duration={metrics.duration_ms}ms attempts={metrics.attempts}"
        )

    def get_all(self) -> list[GenerationMetrics]:
        """Get all recorded metrics."""
        return self._metrics.copy()

    def clear(self) -> None:
        """Clear all recorded metrics."""
        self._metrics.clear()

    def summary(self) -> dict[str, Any]:
        """Get a summary of recorded metrics."""
        if not self._metrics:
            return {
                "count": 0,
                "succeeded": 0,
                "failures": {},
                "total_retries": 0,
                "avg_duration_ms": 0,
            }

        failures = Counter(m.error_code.value for m in self._metrics if m.error_code is not None)
        total_duration = sum(m.duration_ms for m in self._metrics)

        return {
            "count": len(self._metrics),
            "succeeded": len(self._metrics) - sum(failures.values()),
            "failures": dict(failures),
            "total_retries": sum(m.retry_count for m in self._metrics),
            "avg_duration_ms": total_duration / len(self._metrics),
        }
