"""
Gateway configuration

Builds the validated configuration record consumed by the session manager,
cache store and dispatcher from environment variables.
"""

import os
from typing import Dict, Any, Optional

from pydantic import BaseModel, Field, model_validator


class GatewayConfig(BaseModel):
    """Validated tuning knobs for the gateway core."""
    session_idle_timeout: float = Field(1800.0, gt=0, description="Seconds a session may stay idle")
    session_sweep_interval: float = Field(300.0, gt=0, description="Seconds between idle-session sweeps")
    max_sessions: int = Field(100, ge=1, description="Maximum concurrent sessions")
    cache_ttl_schema: float = Field(1800.0, gt=0, description="TTL for schema-like lookups")
    cache_ttl_search: float = Field(300.0, gt=0, description="TTL for search and listing lookups")
    cache_cleanup_interval: float = Field(300.0, gt=0, description="Seconds between expired-entry sweeps")
    retry_max_attempts: int = Field(3, ge=1, description="Total upstream attempts per invocation")
    retry_base_delay: float = Field(1.0, ge=0, description="Delay before the second attempt")
    retry_max_delay: float = Field(10.0, ge=0, description="Upper bound for any single retry delay")
    upstream_timeout: float = Field(30.0, gt=0, description="Timeout for one upstream call")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_delays(self):
        if self.retry_max_delay < self.retry_base_delay:
            raise ValueError("retry_max_delay must be greater than or equal to retry_base_delay")
        return self

    def ttl_for(self, cache_class: str) -> Optional[float]:
        """
        Resolve the TTL for an operation cache class.

        Returns:
            TTL in seconds, or None when the class is not cached
        """
        if cache_class == "schema":
            return self.cache_ttl_schema
        if cache_class == "search":
            return self.cache_ttl_search
        return None


# env var -> (field name, converter)
_ENV_FIELDS = {
    "SESSION_IDLE_TIMEOUT": ("session_idle_timeout", float),
    "SESSION_SWEEP_INTERVAL": ("session_sweep_interval", float),
    "MAX_SESSIONS": ("max_sessions", int),
    "CACHE_TTL_SCHEMA": ("cache_ttl_schema", float),
    "CACHE_TTL_SEARCH": ("cache_ttl_search", float),
    "CACHE_CLEANUP_INTERVAL": ("cache_cleanup_interval", float),
    "MAX_RETRIES": ("retry_max_attempts", int),
    "RETRY_DELAY": ("retry_base_delay", float),
    "RETRY_MAX_DELAY": ("retry_max_delay", float),
    "UPSTREAM_TIMEOUT": ("upstream_timeout", float),
}


def load_gateway_config(environ: Optional[Dict[str, str]] = None) -> GatewayConfig:
    """
    Load gateway configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated GatewayConfig

    Raises:
        ValueError: If a variable cannot be parsed or fails validation
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    for env_name, (field_name, convert) in _ENV_FIELDS.items():
        raw = environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            values[field_name] = convert(raw)
        except ValueError:
            raise ValueError(f"Invalid value for {env_name}: {raw!r}") from None

    return GatewayConfig(**values)


def get_server_settings(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Get transport-level settings for the MCP server process.

    Returns:
        Dictionary with server name, host and port
    """
    environ = os.environ if environ is None else environ
    return {
        "name": environ.get("MCP_SERVER_NAME", "lightdash-mcp-server"),
        "host": environ.get("MCP_HOST", "0.0.0.0"),
        "port": int(environ.get("MCP_PORT", "8000")),
    }
