"""
Request-mediation gateway package

Session management, caching, argument validation, dispatch with retry and
result normalization for operations exposed over MCP.
"""

from .errors import ErrorKind, GatewayError, RETRYABLE_KINDS, kind_for_status
from .config import GatewayConfig, load_gateway_config, get_server_settings
from .cache import CacheStore, CacheEntry, make_cache_key
from .sessions import Session, SessionManager
from .retry import RetryPolicy, backoff_delay, with_retry
from .normalizer import normalize_row, normalize_rows, normalize_results
from .validation import ArgumentSchema, FieldSpec, validate_arguments, uuid_field
from .operations import OperationRegistry, OperationSpec, UpstreamRequest
from .dispatcher import OperationDispatcher, OperationInvocation, OperationResult
from .service import Gateway, SessionReleaseMiddleware

__all__ = [
    # Errors
    'ErrorKind',
    'GatewayError',
    'RETRYABLE_KINDS',
    'kind_for_status',

    # Configuration
    'GatewayConfig',
    'load_gateway_config',
    'get_server_settings',

    # Stores
    'CacheStore',
    'CacheEntry',
    'make_cache_key',
    'Session',
    'SessionManager',

    # Retry
    'RetryPolicy',
    'backoff_delay',
    'with_retry',

    # Normalization
    'normalize_row',
    'normalize_rows',
    'normalize_results',

    # Validation
    'ArgumentSchema',
    'FieldSpec',
    'validate_arguments',
    'uuid_field',

    # Dispatch
    'OperationRegistry',
    'OperationSpec',
    'UpstreamRequest',
    'OperationDispatcher',
    'OperationInvocation',
    'OperationResult',
    'Gateway',
    'SessionReleaseMiddleware'
]
