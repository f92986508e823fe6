"""
Standardized logging setup for the Lightdash MCP gateway.
Uses Python's built-in logging with structured session correlation.
"""

import logging
import sys
import os
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Colored logging formatter with timestamps."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors=True):
        super().__init__(
            fmt='%(asctime)s - %(name)s%(session_part)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record):
        record.session_part = f" {record.session}" if getattr(record, 'session', '') else ""

        if not self.use_colors:
            return super().format(record)

        level_color = self.COLORS.get(record.levelname, '')
        original_levelname = record.levelname
        record.levelname = f"{level_color}{record.levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


# Get log level from environment variable, default to INFO
log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
log_level_value = getattr(logging, log_level, logging.INFO)

use_colors = os.getenv('LOG_COLORS', 'true').lower() in ('true', '1', 'yes', 'on')

# Leave third-party loggers alone; only surface their warnings
if not logging.getLogger().handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname)s:%(name)s:%(message)s'))
    logging.getLogger().addHandler(handler)
    logging.getLogger().setLevel(logging.WARNING)


class SessionContextFilter(logging.Filter):
    """Add gateway session context to log records."""

    def __init__(self):
        super().__init__()
        self.session_id = None

    def set_context(self, session_id: Optional[str] = None):
        self.session_id = session_id

    def filter(self, record):
        record.session = f"session:{self.session_id[:8]}..." if self.session_id else ""
        return True


class SessionHandler(logging.StreamHandler):
    """Stream handler that applies session formatting and colors to our loggers."""

    def __init__(self, use_colors=True):
        super().__init__(sys.stderr)
        self.setFormatter(ColoredFormatter(use_colors=use_colors))


session_filter = SessionContextFilter()


def get_logger(name: str) -> logging.Logger:
    """Get a logger with session context and colored formatting."""
    logger = logging.getLogger(name)
    if session_filter not in logger.filters:
        logger.addFilter(session_filter)
        if not any(isinstance(h, SessionHandler) for h in logger.handlers):
            logger.addHandler(SessionHandler(use_colors=use_colors))
            logger.propagate = False
            logger.setLevel(log_level_value)
    return logger


def set_session_context(session_id: Optional[str] = None):
    """Set session context for all loggers."""
    session_filter.set_context(session_id)


# Component-specific loggers
session_logger = get_logger('SESSION')
cache_logger = get_logger('CACHE')
dispatch_logger = get_logger('DISPATCH')
http_logger = get_logger('HTTP')
server_logger = get_logger('SERVER')


def log_operation_call(operation_name: str, session_id: str, **params):
    """Helper to log operation execution."""
    set_session_context(session_id)
    extra_str = " | ".join(f"{k}:{str(v)[:50]}" for k, v in params.items() if v is not None)
    dispatch_logger.info(f"executing {operation_name} | {extra_str}" if extra_str else f"executing {operation_name}")
