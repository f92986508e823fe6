"""
OpenTelemetry metrics collection for gateway operations

Counters and histograms for operation invocations, upstream requests, cache
lookups, retries and errors.
"""

from typing import Dict, Any

from src.logging import get_logger

logger = get_logger('TELEMETRY_METRICS')

_metrics_enabled = False
_instruments: Dict[str, Any] = {}


def initialize_metrics() -> bool:
    """Initialize OpenTelemetry metrics instruments."""
    global _metrics_enabled

    from .config import get_meter
    meter = get_meter()
    if not meter:
        logger.debug("metrics not available | meter not initialized")
        return False

    try:
        _instruments.update({
            "operation_counter": meter.create_counter(
                name="gateway_operation_invocations_total",
                description="Total number of operation invocations",
                unit="1"
            ),
            "operation_duration": meter.create_histogram(
                name="gateway_operation_duration_seconds",
                description="Duration of operation invocations",
                unit="s"
            ),
            "upstream_counter": meter.create_counter(
                name="lightdash_api_requests_total",
                description="Total number of Lightdash API requests",
                unit="1"
            ),
            "upstream_duration": meter.create_histogram(
                name="lightdash_api_duration_seconds",
                description="Duration of Lightdash API requests",
                unit="s"
            ),
            "cache_counter": meter.create_counter(
                name="gateway_cache_lookups_total",
                description="Cache lookups by outcome",
                unit="1"
            ),
            "retry_counter": meter.create_counter(
                name="gateway_retries_total",
                description="Upstream retries by error kind",
                unit="1"
            ),
            "error_counter": meter.create_counter(
                name="gateway_errors_total",
                description="Failed invocations by error kind",
                unit="1"
            ),
        })
        _metrics_enabled = True
        logger.info("metrics initialization complete")
        return True

    except Exception as e:
        logger.error(f"metrics initialization failed | error: {e}")
        return False


def _add(name: str, value: float, attributes: Dict[str, str]) -> None:
    if not _metrics_enabled:
        return
    try:
        instrument = _instruments[name]
        if hasattr(instrument, "add"):
            instrument.add(value, attributes)
        else:
            instrument.record(value, attributes)
    except Exception as e:
        logger.debug(f"failed to record {name} | error: {e}")


def record_operation(operation_name: str, duration: float, success: bool, cached: bool = False):
    attributes = {
        "operation": operation_name,
        "status": "success" if success else "error",
        "cached": str(cached).lower(),
    }
    _add("operation_counter", 1, attributes)
    _add("operation_duration", duration, attributes)


def record_upstream_request(route: str, method: str, status_code: int, duration: float):
    """Record one upstream call; route must be a bounded label, never a raw path."""
    attributes = {
        "route": route,
        "method": method,
        "status_code": str(status_code),
        "status": "success" if 0 < status_code < 400 else "error",
    }
    _add("upstream_counter", 1, attributes)
    _add("upstream_duration", duration, attributes)


def record_cache_lookup(operation_name: str, hit: bool):
    _add("cache_counter", 1, {"operation": operation_name, "outcome": "hit" if hit else "miss"})


def record_retry(operation_name: str, error_kind: str):
    _add("retry_counter", 1, {"operation": operation_name, "error_kind": error_kind})


def record_error(error_kind: str, operation_name: str):
    _add("error_counter", 1, {"operation": operation_name, "error_kind": error_kind})


def get_metrics_status() -> Dict[str, Any]:
    return {
        "enabled": _metrics_enabled,
        "instruments": sorted(_instruments),
    }
