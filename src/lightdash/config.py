"""
Lightdash API configuration

Handles environment variables, authentication headers, and base URL
configuration for the Lightdash API.
"""

import os
from typing import Dict, Tuple, Optional

DEFAULT_LIGHTDASH_API_URL = "https://app.lightdash.cloud"


def get_lightdash_config() -> Tuple[str, str, bool]:
    """
    Get Lightdash API configuration from environment variables.

    Returns:
        Tuple of (api_url, api_key, is_configured)
    """
    api_url = os.getenv("LIGHTDASH_API_URL", "") or DEFAULT_LIGHTDASH_API_URL
    api_key = os.getenv("LIGHTDASH_API_KEY", "")
    return api_url.rstrip("/"), api_key, bool(api_key)


def validate_lightdash_config() -> Optional[str]:
    """
    Validate Lightdash API configuration.

    Returns:
        Error message if configuration is invalid, None if valid
    """
    _, _, is_configured = get_lightdash_config()
    if not is_configured:
        return "Error: Lightdash API credentials not configured. Please set the LIGHTDASH_API_KEY environment variable."
    return None


def get_lightdash_headers(api_key: str, additional_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Build request headers for the Lightdash API.

    Args:
        api_key: Personal access token
        additional_headers: Optional additional headers to merge

    Returns:
        Complete headers dictionary for API requests
    """
    headers = {
        "Authorization": f"ApiKey {api_key}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if additional_headers:
        headers.update(additional_headers)
    return headers


def sanitize_headers_for_logging(headers: Dict[str, str]) -> Dict[str, str]:
    """Redact credentials before headers reach a log line."""
    sensitive_keys = {"authorization", "cookie", "x-api-key"}
    return {
        key: "[REDACTED]" if key.lower() in sensitive_keys else value
        for key, value in headers.items()
    }
