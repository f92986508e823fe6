"""
Shared fixtures for the gateway tests: a controllable clock, a scripted
upstream client and a recording sleep.
"""

import pytest

from src.gateway import (
    ArgumentSchema,
    CacheStore,
    FieldSpec,
    GatewayConfig,
    OperationDispatcher,
    OperationRegistry,
    OperationSpec,
    SessionManager,
    UpstreamRequest,
)
from src.lightdash import build_catalog

PROJECT_UUID = "3675b69e-8324-4110-bdca-059031aa8da3"
CHART_UUID = "9a1b2c3d-4e5f-4a6b-8c7d-0e1f2a3b4c5d"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedUpstream:
    """
    Upstream double. Each call pops the next scripted outcome: exceptions are
    raised, anything else is returned. When the script runs out the default
    result is returned.
    """

    def __init__(self, *outcomes, default=None):
        self.outcomes = list(outcomes)
        self.default = default if default is not None else {"ok": True}
        self.calls = []

    async def request(self, method, path, params=None, json_data=None, timeout=None, operation=None):
        self.calls.append({
            "method": method,
            "path": path,
            "params": params,
            "json_data": json_data,
            "timeout": timeout,
            "operation": operation,
        })
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def config():
    return GatewayConfig(
        session_idle_timeout=60.0,
        max_sessions=3,
        cache_ttl_schema=1800.0,
        cache_ttl_search=300.0,
        retry_max_attempts=3,
        retry_base_delay=0.5,
        retry_max_delay=4.0,
        upstream_timeout=5.0,
    )


@pytest.fixture
def catalog():
    return build_catalog()


@pytest.fixture
def make_dispatcher(config, clock, sleep, catalog):
    """Build a dispatcher around a scripted upstream; returns (dispatcher, session_id)."""
    def factory(upstream, registry=None, gateway_config=None):
        effective_config = config if gateway_config is None else gateway_config
        sessions = SessionManager(
            idle_timeout=effective_config.session_idle_timeout,
            max_sessions=effective_config.max_sessions,
            clock=clock
        )
        dispatcher = OperationDispatcher(
            registry=catalog if registry is None else registry,
            upstream=upstream,
            cache=CacheStore(clock=clock),
            sessions=sessions,
            config=effective_config,
            sleep=sleep
        )
        return dispatcher, sessions.open()
    return factory


def write_operation_registry() -> OperationRegistry:
    registry = OperationRegistry()
    registry.register(OperationSpec(
        name="update_space",
        description="Rename a space",
        schema=ArgumentSchema({"name": FieldSpec(type="string", required=True)}),
        build_request=lambda args: UpstreamRequest(method="PATCH", path="/api/v1/spaces/x", json_data=args),
        read_only=False,
    ))
    return registry
