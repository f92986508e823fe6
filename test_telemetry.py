#!/usr/bin/env python3
"""
Tests that telemetry stays a transparent no-op when it is not enabled.
"""

import asyncio
import sys

from src.telemetry import (
    get_metrics_status,
    get_telemetry_status,
    get_tracer,
    initialize_metrics,
    initialize_telemetry,
    record_operation,
    trace_upstream_call,
)


def test_telemetry_disabled_by_default(monkeypatch):
    monkeypatch.delenv("OTEL_TELEMETRY_ENABLED", raising=False)

    assert initialize_telemetry() is False
    assert get_tracer() is None
    assert initialize_metrics() is False

    status = get_telemetry_status()
    assert status["enabled"] is False
    assert status["initialized"] is False
    assert get_metrics_status()["enabled"] is False


def test_recording_without_metrics_is_a_no_op():
    record_operation("list_projects", 0.01, success=True, cached=False)


def test_upstream_decorator_passes_through_without_tracer():
    calls = []

    @trace_upstream_call(operation="ping")
    async def request(method, path):
        calls.append((method, path))
        return {"ok": True}

    assert asyncio.run(request(method="GET", path="/api/v1/health")) == {"ok": True}
    assert calls == [("GET", "/api/v1/health")]


def test_missing_exporter_leaves_telemetry_disabled(monkeypatch):
    monkeypatch.setenv("OTEL_TELEMETRY_ENABLED", "true")
    # a None entry makes the import raise ImportError
    monkeypatch.setitem(sys.modules, "opentelemetry.exporter.otlp.proto.grpc.trace_exporter", None)

    assert initialize_telemetry() is False
    assert get_tracer() is None
    assert get_telemetry_status()["initialized"] is False
