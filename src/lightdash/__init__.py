"""
Lightdash API client package

Provides the upstream HTTP client, configuration helpers and the operation
catalog for the Lightdash analytics API.
"""

from .client import LightdashClient, build_error_message, route_template
from .config import (
    get_lightdash_config,
    validate_lightdash_config,
    get_lightdash_headers,
    sanitize_headers_for_logging,
    DEFAULT_LIGHTDASH_API_URL
)
from .fields import qualify_field_id, qualify_fields, qualify_filters, qualify_sorts
from .operations import build_catalog

__all__ = [
    # Client
    'LightdashClient',
    'build_error_message',
    'route_template',

    # Configuration
    'get_lightdash_config',
    'validate_lightdash_config',
    'get_lightdash_headers',
    'sanitize_headers_for_logging',
    'DEFAULT_LIGHTDASH_API_URL',

    # Field qualification
    'qualify_field_id',
    'qualify_fields',
    'qualify_filters',
    'qualify_sorts',

    # Catalog
    'build_catalog'
]
