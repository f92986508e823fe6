"""
OpenTelemetry decorators for instrumenting gateway operations

Provides decorators that add tracing to dispatched operations and Lightdash
API calls. Both are pass-through when telemetry is not initialized.
"""

import functools
from typing import Callable, Optional

from opentelemetry import trace

from src.logging import get_logger

logger = get_logger('TELEMETRY_DECORATORS')


def trace_operation(span_prefix: str = "gateway.operation"):
    """
    Decorator for OperationDispatcher.invoke-style coroutines.

    The wrapped coroutine receives an invocation as its first positional
    argument after self and returns an OperationResult.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, invocation, *args, **kwargs):
            from .config import get_tracer
            tracer = get_tracer()
            if not tracer:
                return await func(self, invocation, *args, **kwargs)

            with tracer.start_as_current_span(f"{span_prefix}.{invocation.operation_name}") as span:
                span.set_attribute("gateway.operation.name", invocation.operation_name)
                span.set_attribute("gateway.session.id", invocation.session_id)
                result = await func(self, invocation, *args, **kwargs)
                if result.failure is not None:
                    span.set_attribute("gateway.error.kind", result.failure.kind.value)
                    span.set_attribute("gateway.error.retryable", result.failure.retryable)
                    span.set_status(trace.Status(trace.StatusCode.ERROR, result.failure.message[:500]))
                else:
                    span.set_attribute("gateway.cache.hit", result.cached)
                    span.set_status(trace.Status(trace.StatusCode.OK))
                return result

        return wrapper
    return decorator


def trace_upstream_call(operation: Optional[str] = None):
    """
    Decorator to trace Lightdash API calls.

    Args:
        operation: Description of the API operation
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer
            tracer = get_tracer()
            if not tracer:
                return await func(*args, **kwargs)

            with tracer.start_as_current_span(f"lightdash_api.{operation or func.__name__}") as span:
                span.set_attribute("lightdash.operation.type", "api_call")
                if 'method' in kwargs:
                    span.set_attribute("lightdash.api.method", kwargs['method'])
                if 'path' in kwargs:
                    span.set_attribute("lightdash.api.path", kwargs['path'])
                try:
                    result = await func(*args, **kwargs)
                    span.set_status(trace.Status(trace.StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)[:500]))
                    span.record_exception(e)
                    kind = getattr(e, 'kind', None)
                    if kind is not None:
                        span.set_attribute("lightdash.error.kind", kind.value)
                    status_code = getattr(e, 'status_code', None)
                    if status_code is not None:
                        span.set_attribute("lightdash.error.status_code", status_code)
                    raise

        return wrapper
    return decorator
