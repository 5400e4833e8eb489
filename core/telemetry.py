"""Telemetry module for tracking request performance with PostHog."""

import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from posthog import Posthog

logger = logging.getLogger(__name__)

DISTINCT_ID = "geomelody-service"

VENDORS = ("lastfm", "musixmatch")


@dataclass
class StepResult:
    """Result of a tracked step."""

    duration_ms: float
    success: bool = True
    error_type: str | None = None


@dataclass
class RequestTelemetry:
    """Tracks performance metrics for a single top-track request."""

    steps: dict[str, StepResult] = field(default_factory=dict)
    api_calls: dict[str, int] = field(default_factory=lambda: dict.fromkeys(VENDORS, 0))
    start_time: float = field(default_factory=time.perf_counter)

    @contextmanager
    def track_step(self, step_name: str):
        """Context manager to time a pipeline stage.

        Args:
            step_name: Name of the stage being tracked

        Yields:
            None
        """
        step_start = time.perf_counter()
        error_type = None

        try:
            yield
        except BaseException as e:
            error_type = type(e).__name__
            raise
        finally:
            self.steps[step_name] = StepResult(
                duration_ms=(time.perf_counter() - step_start) * 1000,
                success=error_type is None,
                error_type=error_type,
            )

    def record_api_call(self, vendor: str) -> None:
        """Increment API call counter for a vendor.

        Args:
            vendor: Name of the vendor ("lastfm", "musixmatch")
        """
        if vendor in self.api_calls:
            self.api_calls[vendor] += 1
        else:
            logger.warning(f"Unknown vendor for API call tracking: {vendor}")

    def get_total_duration_ms(self) -> float:
        """Get total elapsed time since telemetry was created."""
        return (time.perf_counter() - self.start_time) * 1000

    def get_step_timings(self) -> dict[str, float]:
        """Get timing for each step in milliseconds."""
        return {f"{name}_ms": step.duration_ms for name, step in self.steps.items()}

    def send_to_posthog(
        self,
        posthog_client: Posthog,
        extra_properties: dict[str, Any] | None = None,
    ) -> None:
        """Send all telemetry events to PostHog.

        Args:
            posthog_client: PostHog client instance
            extra_properties: Additional properties to include in the completed event
        """
        extra_properties = extra_properties or {}

        for step_name, step_result in self.steps.items():
            posthog_client.capture(
                distinct_id=DISTINCT_ID,
                event=f"top_track_{step_name}",
                properties={
                    "step": step_name,
                    "duration_ms": round(step_result.duration_ms, 2),
                    "success": step_result.success,
                    "error_type": step_result.error_type,
                },
            )

        cache_data = get_cache_stats()
        cache_props = cache_data.copy() if cache_data else _empty_cache_stats()

        posthog_client.capture(
            distinct_id=DISTINCT_ID,
            event="top_track_completed",
            properties={
                "total_duration_ms": round(self.get_total_duration_ms(), 2),
                "steps": self.get_step_timings(),
                "api_calls": self.api_calls.copy(),
                "cache": cache_props,
                **extra_properties,
            },
        )

        logger.debug(
            f"Sent telemetry: {len(self.steps)} steps, total {self.get_total_duration_ms():.1f}ms"
        )


# ---------------------------------------------------------------------------
# Per-request cache stats via ContextVar
# ---------------------------------------------------------------------------

_cache_stats_var: ContextVar[dict | None] = ContextVar("cache_stats")


def _empty_cache_stats() -> dict:
    return {
        "cache_hits": 0,
        "cache_misses": 0,
        "cache_errors": 0,
        "vendor_calls": 0,
        "vendor_time_ms": 0.0,
    }


def init_cache_stats() -> None:
    """Initialize cache stats for the current request context."""
    _cache_stats_var.set(_empty_cache_stats())


def _increment(key: str, amount: float = 1) -> None:
    stats = _cache_stats_var.get(None)
    if stats is not None:
        stats[key] += amount


def record_cache_hit() -> None:
    """Record a response cache hit in the current request context."""
    _increment("cache_hits")


def record_cache_miss() -> None:
    """Record a response cache miss in the current request context."""
    _increment("cache_misses")


def record_cache_error() -> None:
    """Record a cache read/write failure in the current request context."""
    _increment("cache_errors")


def record_vendor_call(ms: float) -> None:
    """Record one vendor API call and its duration in the current request context."""
    _increment("vendor_calls")
    _increment("vendor_time_ms", ms)


def get_cache_stats() -> dict | None:
    """Get cache stats for the current request context, or None if not initialized."""
    return _cache_stats_var.get(None)
