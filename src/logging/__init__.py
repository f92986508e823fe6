"""
Logging utilities for the Lightdash MCP gateway.
"""

from .mcp_logger import (
    get_logger,
    set_session_context,
    log_operation_call,
    session_logger,
    cache_logger,
    dispatch_logger,
    http_logger,
    server_logger
)

__all__ = [
    'get_logger',
    'set_session_context',
    'log_operation_call',
    'session_logger',
    'cache_logger',
    'dispatch_logger',
    'http_logger',
    'server_logger'
]
