"""
Gateway service

Wires the session manager, cache store and dispatcher together and binds
transport-level session ids (the MCP session header) to gateway sessions.

The first request seen on a transport session acts as the handshake and opens
a gateway session. Once that session is closed, swept or evicted, the next
request on the same transport session gets SessionNotFound and the binding is
dropped, so the client has to re-handshake.
"""

from typing import Any, Dict, Optional

from src.logging import get_logger

from .cache import CacheStore
from .config import GatewayConfig
from .dispatcher import OperationDispatcher, OperationInvocation
from .errors import ErrorKind
from .operations import OperationRegistry
from .sessions import SessionManager

logger = get_logger('GATEWAY')


class Gateway:
    def __init__(
        self,
        config: GatewayConfig,
        registry: OperationRegistry,
        upstream: Any,
        sessions: Optional[SessionManager] = None,
        cache: Optional[CacheStore] = None,
        dispatcher: Optional[OperationDispatcher] = None
    ):
        self.config = config
        if sessions is None:
            sessions = SessionManager(
                idle_timeout=config.session_idle_timeout,
                max_sessions=config.max_sessions
            )
        if cache is None:
            cache = CacheStore()
        if dispatcher is None:
            dispatcher = OperationDispatcher(
                registry=registry,
                upstream=upstream,
                cache=cache,
                sessions=sessions,
                config=config
            )
        self.sessions = sessions
        self.cache = cache
        self.dispatcher = dispatcher
        self._bindings: Dict[str, str] = {}

    def bind(self, transport_key: str) -> str:
        """
        Return the gateway session bound to a transport session, opening one on
        first sight.
        """
        session_id = self._bindings.get(transport_key)
        if session_id is None:
            self._prune_bindings()
            session_id = self.sessions.open()
            self._bindings[transport_key] = session_id
            logger.info(f"handshake | transport:{transport_key[:8]} | session:{session_id[:8]}")
        return session_id

    def release(self, transport_key: str) -> None:
        """Close the gateway session bound to a transport session. Idempotent."""
        session_id = self._bindings.pop(transport_key, None)
        if session_id is not None:
            self.sessions.close(session_id)

    async def handle(self, transport_key: str, operation_name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Invoke an operation on behalf of a transport session.

        Returns:
            ``{"payload": ...}`` or ``{"error": {...}}``
        """
        session_id = self.bind(transport_key)
        result = await self.dispatcher.invoke(OperationInvocation(
            operation_name=operation_name,
            session_id=session_id,
            arguments=arguments or {}
        ))
        if not result.ok and result.failure.kind is ErrorKind.SESSION_NOT_FOUND:
            self._bindings.pop(transport_key, None)
        return result.to_dict()

    def _prune_bindings(self) -> None:
        # Stale bindings only matter until their client returns; cap the table
        if len(self._bindings) < 2 * self.config.max_sessions:
            return
        stale = [key for key, session_id in self._bindings.items() if session_id not in self.sessions]
        for key in stale:
            del self._bindings[key]

    def start_background_tasks(self) -> None:
        self.sessions.start_sweeper(self.config.session_sweep_interval)
        self.cache.start_cleanup(self.config.cache_cleanup_interval)

    async def stop_background_tasks(self) -> None:
        await self.sessions.stop_sweeper()
        await self.cache.stop_cleanup()

    def stats(self) -> Dict[str, Any]:
        cache_stats = self.cache.stats()
        return {
            "sessions": self.sessions.stats(),
            "cache": {
                "size": cache_stats["size"],
                "hits": cache_stats["hits"],
                "misses": cache_stats["misses"],
            },
            "operations": len(self.dispatcher.registry),
        }


class SessionReleaseMiddleware:
    """
    ASGI middleware closing the gateway session when an MCP client terminates
    its transport session with ``DELETE`` and the ``mcp-session-id`` header.
    """

    def __init__(self, app, gateway: Gateway):
        self.app = app
        self.gateway = gateway

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["method"] == "DELETE":
            for name, value in scope.get("headers", []):
                if name == b"mcp-session-id":
                    transport_key = value.decode("latin-1")
                    self.gateway.release(transport_key)
                    logger.info(f"transport closed | transport:{transport_key[:8]}")
                    break
        await self.app(scope, receive, send)
