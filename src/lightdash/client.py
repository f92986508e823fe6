"""
Lightdash API HTTP client

Issues requests against the Lightdash REST API and maps every transport or
API failure into the gateway error taxonomy. Successful calls return the
``results`` member of the Lightdash success envelope.
"""

import json
import re
import time
from typing import Any, Dict, Optional

import httpx

from src.gateway.errors import ErrorKind, GatewayError, kind_for_status, malformed_response
from src.logging import http_logger as logger
from src.telemetry.decorators import trace_upstream_call
from src.telemetry.metrics import record_upstream_request

from .config import get_lightdash_config, get_lightdash_headers, sanitize_headers_for_logging


_SUGGESTIONS = (
    (("filters",), "Ensure filters object is provided, even if empty ({})."),
    (("dimensions", "metrics"), "Check that field IDs exist in the explore schema."),
    (("exploreId", "explore"), "Verify the explore/table name exists in the project."),
    (("uuid", "UUID"), 'Ensure UUIDs are in the correct format (e.g., "123e4567-e89b-12d3-a456-426614174000").'),
)

_UUID_SEGMENT = re.compile(r'/[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}(?=/|$)')

_STATUS_HINTS = {
    400: "Please check your request parameters.",
    401: "Please check your API key and permissions.",
    403: "You don't have permission to access this resource.",
    404: "The requested resource doesn't exist or you don't have access to it.",
    429: "The Lightdash API is throttling requests.",
}


def build_error_message(error: Dict[str, Any], status_code: int) -> str:
    """
    Build a readable message from a Lightdash error envelope.

    Args:
        error: The ``error`` member ({name, statusCode, message, data})
        status_code: Effective HTTP status

    Returns:
        Message with field-level validation details and suggestions appended
    """
    name = error.get("name") or "UnknownError"
    message = f"Lightdash API error: {name}, {error.get('message') or 'no message'}"

    data = error.get("data")
    if isinstance(data, dict):
        details = []
        for field, field_error in data.items():
            if isinstance(field_error, dict) and "message" in field_error:
                details.append(f"{field}: {field_error['message']}")
            elif isinstance(field_error, str):
                details.append(f"{field}: {field_error}")
        if details:
            message += f". Validation errors: {', '.join(details)}"
            for needles, suggestion in _SUGGESTIONS:
                if any(needle in detail for detail in details for needle in needles):
                    message += f". Suggestion: {suggestion}"

    hint = _STATUS_HINTS.get(status_code)
    if hint is None and status_code >= 500:
        hint = "This is likely a temporary issue. Please try again later."
    if hint:
        message += f" ({hint})"
    return message


def route_template(path: str) -> str:
    """Collapse id segments so a path can be used as a low-cardinality label."""
    return _UUID_SEGMENT.sub("/{uuid}", path.split("?", 1)[0])


def _error_from_envelope(body: Any, status_code: int, fallback_text: str) -> GatewayError:
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        reported = error.get("statusCode")
        effective = reported if isinstance(reported, int) and reported >= 400 else status_code
        return GatewayError(kind_for_status(effective), build_error_message(error, effective), effective)

    text = fallback_text[:200] or "no message"
    return GatewayError(kind_for_status(status_code), f"HTTP {status_code}: {text}", status_code)


class LightdashClient:
    """
    Thin async client for the Lightdash API.

    A fresh httpx.AsyncClient is used per request; tests inject an
    ``httpx.MockTransport`` through ``transport``.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        env_url, env_key, _ = get_lightdash_config()
        self.api_url = (api_url or env_url).rstrip("/")
        self.api_key = api_key if api_key is not None else env_key
        self.timeout = timeout
        self._transport = transport

    @trace_upstream_call(operation="http_request")
    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        operation: Optional[str] = None
    ) -> Any:
        """
        Make a request to the Lightdash API.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path starting with /api
            params: Query parameters
            json_data: JSON body for POST requests
            timeout: Request timeout in seconds (defaults to the client timeout)
            operation: Gateway operation name, used as the metrics label

        Returns:
            The ``results`` member of the success envelope

        Raises:
            GatewayError: Tagged with the mapped ErrorKind
        """
        url = f"{self.api_url}/{path.lstrip('/')}"
        effective_timeout = self.timeout if timeout is None else timeout
        headers = get_lightdash_headers(self.api_key)
        logger.debug(
            f"{method} {url} | params:{params} | data_size:{len(json.dumps(json_data)) if json_data else 0} | "
            f"headers:{sanitize_headers_for_logging(headers)}"
        )

        start = time.monotonic()
        status_code = 0
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_data,
                    headers=headers,
                    timeout=effective_timeout
                )
            status_code = response.status_code
        except httpx.TimeoutException as e:
            logger.warning(f"timeout | {method} {path} | after:{effective_timeout}s")
            raise GatewayError(
                ErrorKind.UPSTREAM_UNAVAILABLE,
                f"Lightdash API request timed out after {effective_timeout}s: {type(e).__name__}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"transport error | {method} {path} | {e}")
            raise GatewayError(
                ErrorKind.UPSTREAM_UNAVAILABLE,
                f"Could not reach Lightdash API: {e}"
            ) from e
        finally:
            record_upstream_request(operation or route_template(path), method, status_code, time.monotonic() - start)

        return self._process_response(response)

    def _process_response(self, response: httpx.Response) -> Any:
        response_text = response.text
        if response.status_code >= 400:
            logger.warning(f"response {response.status_code} | size:{len(response_text)}")
        else:
            logger.debug(f"response {response.status_code} | size:{len(response_text)}")

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            raise _error_from_envelope(body, response.status_code, response_text)

        if body is None:
            raise malformed_response(
                f"Lightdash API returned a non-JSON body ({response.headers.get('Content-Type', 'unknown')})"
            )

        if isinstance(body, dict) and body.get("status") == "error":
            raise _error_from_envelope(body, response.status_code, response_text)

        if not isinstance(body, dict) or "results" not in body:
            keys = list(body.keys()) if isinstance(body, dict) else type(body).__name__
            raise malformed_response(f"Unexpected response structure: {keys}. Expected a 'results' field.")

        return body["results"]
