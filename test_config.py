#!/usr/bin/env python3
"""
Tests for environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from src.gateway import GatewayConfig, get_server_settings, load_gateway_config
from src.lightdash import get_lightdash_config, validate_lightdash_config


def test_defaults():
    config = load_gateway_config({})
    assert config.session_idle_timeout == 1800.0
    assert config.session_sweep_interval == 300.0
    assert config.max_sessions == 100
    assert config.cache_ttl_schema == 1800.0
    assert config.cache_ttl_search == 300.0
    assert config.retry_max_attempts == 3
    assert config.retry_base_delay == 1.0
    assert config.retry_max_delay == 10.0
    assert config.upstream_timeout == 30.0


def test_environment_overrides():
    config = load_gateway_config({
        "SESSION_IDLE_TIMEOUT": "120",
        "MAX_SESSIONS": "5",
        "MAX_RETRIES": "1",
        "RETRY_DELAY": "0.25",
        "CACHE_TTL_SEARCH": "",
    })
    assert config.session_idle_timeout == 120.0
    assert config.max_sessions == 5
    assert config.retry_max_attempts == 1
    assert config.retry_base_delay == 0.25
    assert config.cache_ttl_search == 300.0


def test_unparseable_value_names_the_variable():
    with pytest.raises(ValueError, match="MAX_SESSIONS"):
        load_gateway_config({"MAX_SESSIONS": "lots"})


@pytest.mark.parametrize("environ", [
    {"SESSION_IDLE_TIMEOUT": "0"},
    {"MAX_SESSIONS": "0"},
    {"CACHE_TTL_SCHEMA": "-1"},
    {"RETRY_DELAY": "5", "RETRY_MAX_DELAY": "1"},
])
def test_out_of_range_values_rejected(environ):
    with pytest.raises(ValueError):
        load_gateway_config(environ)


def test_config_is_immutable():
    config = GatewayConfig()
    with pytest.raises(ValidationError):
        config.max_sessions = 10


def test_ttl_for_cache_classes():
    config = GatewayConfig(cache_ttl_schema=60, cache_ttl_search=10)
    assert config.ttl_for("schema") == 60
    assert config.ttl_for("search") == 10
    assert config.ttl_for("none") is None


def test_server_settings():
    settings = get_server_settings({"MCP_SERVER_NAME": "analytics", "MCP_PORT": "9000"})
    assert settings == {"name": "analytics", "host": "0.0.0.0", "port": 9000}


def test_lightdash_config_from_environment(monkeypatch):
    monkeypatch.setenv("LIGHTDASH_API_URL", "https://lightdash.example.com/")
    monkeypatch.setenv("LIGHTDASH_API_KEY", "token")
    assert get_lightdash_config() == ("https://lightdash.example.com", "token", True)
    assert validate_lightdash_config() is None

    monkeypatch.delenv("LIGHTDASH_API_KEY")
    monkeypatch.delenv("LIGHTDASH_API_URL")
    api_url, _, configured = get_lightdash_config()
    assert api_url == "https://app.lightdash.cloud"
    assert configured is False
    assert "LIGHTDASH_API_KEY" in validate_lightdash_config()
