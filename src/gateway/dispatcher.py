"""
Operation dispatcher

Routes a named invocation through session refresh, argument validation, cache
lookup, the upstream call (with retry on transient failure), result
normalization and cache write-through. Every outcome is an OperationResult;
failures never escape as raw exceptions.
"""

import asyncio
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional

from src.logging import dispatch_logger as logger, log_operation_call
from src.telemetry.decorators import trace_operation
from src.telemetry.metrics import record_cache_lookup, record_error, record_operation, record_retry

from .cache import CacheStore, make_cache_key
from .config import GatewayConfig
from .errors import ErrorKind, GatewayError, invalid_argument
from .normalizer import normalize_results
from .operations import OperationRegistry, OperationSpec
from .retry import RetryPolicy, with_retry
from .sessions import SessionManager
from .validation import validate_arguments


@dataclass(frozen=True)
class OperationInvocation:
    operation_name: str
    session_id: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OperationResult:
    """Either a payload or a failure, never both."""
    payload: Any = None
    failure: Optional[GatewayError] = None
    cached: bool = False
    attempts: int = 0

    @classmethod
    def success(cls, payload: Any, cached: bool = False, attempts: int = 0) -> "OperationResult":
        return cls(payload=payload, cached=cached, attempts=attempts)

    @classmethod
    def error(cls, failure: GatewayError, attempts: int = 0) -> "OperationResult":
        return cls(failure=failure, attempts=attempts)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def to_dict(self) -> Dict[str, Any]:
        if self.failure is not None:
            return {"error": self.failure.to_dict()}
        return {"payload": self.payload}


class OperationDispatcher:
    """
    Central router for operation invocations.

    The session manager and cache store are owned elsewhere and injected, as
    are the upstream client and the sleep used between retries.
    """

    def __init__(
        self,
        registry: OperationRegistry,
        upstream: Any,
        cache: CacheStore,
        sessions: SessionManager,
        config: GatewayConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.registry = registry
        self.upstream = upstream
        self.cache = cache
        self.sessions = sessions
        self.config = config
        self.retry_policy = RetryPolicy(
            max_attempts=config.retry_max_attempts,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay
        )
        self._sleep = sleep

    def list_operations(self) -> List[Dict[str, Any]]:
        """Describe the catalog for tool discovery."""
        return [
            {
                "name": spec.name,
                "description": spec.description,
                "inputSchema": spec.schema.to_json_schema(),
                "cacheable": spec.cacheable,
            }
            for spec in self.registry
        ]

    @trace_operation()
    async def invoke(self, invocation: OperationInvocation) -> OperationResult:
        log_operation_call(invocation.operation_name, invocation.session_id, arguments=sorted(invocation.arguments))
        start = time.monotonic()
        attempts = [0]

        try:
            payload, cached = await self._dispatch(invocation, attempts)
            result = OperationResult.success(payload, cached=cached, attempts=attempts[0])
        except GatewayError as e:
            result = OperationResult.error(e, attempts=attempts[0])
        except Exception as e:
            logger.exception(f"unexpected failure | operation:{invocation.operation_name}")
            result = OperationResult.error(
                GatewayError(ErrorKind.UPSTREAM_ERROR, f"Unexpected error: {type(e).__name__}: {e}"),
                attempts=attempts[0]
            )

        duration = time.monotonic() - start
        record_operation(invocation.operation_name, duration, result.ok, cached=result.cached)
        if result.ok:
            logger.info(
                f"completed {invocation.operation_name} | cached:{result.cached} | "
                f"attempts:{result.attempts} | duration:{duration:.3f}s"
            )
        else:
            record_error(result.failure.kind.value, invocation.operation_name)
            logger.warning(
                f"failed {invocation.operation_name} | kind:{result.failure.kind.value} | "
                f"attempts:{result.attempts} | {result.failure.message[:200]}"
            )
        return result

    async def _dispatch(self, invocation: OperationInvocation, attempts: List[int]):
        self.sessions.touch(invocation.session_id)

        spec = self.registry.get(invocation.operation_name)
        if spec is None:
            raise invalid_argument(
                f"Unknown operation: {invocation.operation_name}. "
                f"Available operations: {', '.join(self.registry.names())}"
            )

        arguments = validate_arguments(spec.schema, invocation.arguments)
        ttl = self.config.ttl_for(spec.cache_class)

        cache_key = None
        if ttl is not None:
            cache_key = make_cache_key(spec.name, arguments)
            hit, value = self.cache.lookup(cache_key)
            record_cache_lookup(spec.name, hit)
            if hit:
                logger.debug(f"cache hit | operation:{spec.name}")
                return value, True

        results = await self._call_upstream(spec, arguments, attempts)
        payload = normalize_results(results) if spec.normalize_rows else results

        if cache_key is not None:
            self.cache.set(cache_key, payload, ttl)
        return payload, False

    async def _call_upstream(self, spec: OperationSpec, arguments: Dict[str, Any], attempts: List[int]) -> Any:
        request = spec.build_request(arguments)

        async def attempt():
            attempts[0] += 1
            return await self.upstream.request(
                method=request.method,
                path=request.path,
                params=request.params,
                json_data=request.json_data,
                timeout=self.config.upstream_timeout,
                operation=spec.name
            )

        def on_retry(attempt_number: int, error: GatewayError, delay: float):
            record_retry(spec.name, error.kind.value)

        # A write may have landed before an ambiguous failure; only reads are repeated
        policy = self.retry_policy if spec.read_only else replace(self.retry_policy, max_attempts=1)
        return await with_retry(attempt, policy, sleep=self._sleep, on_retry=on_retry)
