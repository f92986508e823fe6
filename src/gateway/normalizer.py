"""
Result normalizer

Lightdash wraps every cell of a query result as
``{fieldId: {"value": {"raw": ..., "formatted": ...}}}``. The gateway hands
callers plain rows of raw values; formatted strings are a display concern.
"""

from typing import Any, Dict, List

from .errors import malformed_response


def normalize_row(row: Any, index: int = 0) -> Dict[str, Any]:
    if not isinstance(row, dict):
        raise malformed_response(f"Row {index} is not an object: {type(row).__name__}")

    normalized = {}
    for field_id, cell in row.items():
        if not isinstance(cell, dict) or not isinstance(cell.get("value"), dict):
            raise malformed_response(
                f"Row {index} field '{field_id}' is missing the value envelope"
            )
        value = cell["value"]
        if "raw" not in value:
            raise malformed_response(
                f"Row {index} field '{field_id}' has no raw value"
            )
        normalized[field_id] = value["raw"]
    return normalized


def normalize_rows(rows: Any) -> List[Dict[str, Any]]:
    """
    Unwrap every cell of every row to its raw value.

    Row order and field sets are preserved exactly.

    Raises:
        GatewayError: MalformedUpstreamResponse on any row without the envelope
    """
    if not isinstance(rows, list):
        raise malformed_response(f"Expected a list of rows, got {type(rows).__name__}")
    return [normalize_row(row, index) for index, row in enumerate(rows)]


def normalize_results(results: Any) -> Dict[str, Any]:
    """
    Normalize the ``rows`` member of a results object, keeping the rest as-is.
    """
    if not isinstance(results, dict):
        raise malformed_response(f"Expected a results object, got {type(results).__name__}")
    if "rows" not in results:
        raise malformed_response("Results object has no rows")

    normalized = dict(results)
    normalized["rows"] = normalize_rows(results["rows"])
    return normalized
