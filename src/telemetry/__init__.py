"""
OpenTelemetry instrumentation package for the Lightdash MCP gateway

Provides centralized configuration and initialization for OpenTelemetry
tracing and metrics across the gateway.
"""

from .config import (
    initialize_telemetry,
    get_tracer,
    get_meter,
    shutdown_telemetry,
    is_telemetry_enabled,
    get_telemetry_status
)

from .decorators import (
    trace_operation,
    trace_upstream_call
)

from .metrics import (
    initialize_metrics,
    record_operation,
    record_upstream_request,
    record_cache_lookup,
    record_retry,
    record_error,
    get_metrics_status
)

__all__ = [
    # Core configuration
    'initialize_telemetry',
    'get_tracer',
    'get_meter',
    'shutdown_telemetry',
    'is_telemetry_enabled',
    'get_telemetry_status',

    # Decorators
    'trace_operation',
    'trace_upstream_call',

    # Metrics
    'initialize_metrics',
    'record_operation',
    'record_upstream_request',
    'record_cache_lookup',
    'record_retry',
    'record_error',
    'get_metrics_status'
]
