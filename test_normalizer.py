#!/usr/bin/env python3
"""
Tests for query result normalization.
"""

import pytest

from src.gateway import ErrorKind, GatewayError, normalize_results, normalize_rows


def cell(raw, formatted=None):
    return {"value": {"raw": raw, "formatted": formatted if formatted is not None else str(raw)}}


def test_rows_are_flattened_to_raw_values_in_order():
    rows = [
        {"orders_status": cell("shipped", "Shipped"), "orders_total": cell(1250.5, "$1,250.50")},
        {"orders_status": cell("placed", "Placed"), "orders_total": cell(None, "∅")},
    ]

    assert normalize_rows(rows) == [
        {"orders_status": "shipped", "orders_total": 1250.5},
        {"orders_status": "placed", "orders_total": None},
    ]


def test_empty_rows_normalize_to_empty_list():
    assert normalize_rows([]) == []


def test_field_set_is_preserved():
    rows = [{"a": cell(1), "b": cell(2), "c": cell(3)}]
    assert list(normalize_rows(rows)[0]) == ["a", "b", "c"]


@pytest.mark.parametrize("rows", [
    [{"orders_status": "shipped"}],
    [{"orders_status": {"raw": "shipped"}}],
    [{"orders_status": {"value": {"formatted": "Shipped"}}}],
    ["not-a-row"],
    {"rows": []},
])
def test_rows_without_envelope_are_malformed(rows):
    with pytest.raises(GatewayError) as exc_info:
        normalize_rows(rows)
    assert exc_info.value.kind is ErrorKind.MALFORMED_UPSTREAM_RESPONSE


def test_results_keep_other_members():
    results = {
        "rows": [{"customers_id": cell(7)}],
        "fields": {"customers_id": {"type": "number"}},
        "cacheMetadata": {"cacheHit": False},
    }

    normalized = normalize_results(results)

    assert normalized["rows"] == [{"customers_id": 7}]
    assert normalized["fields"] == results["fields"]
    assert normalized["cacheMetadata"] == {"cacheHit": False}
    # input left untouched
    assert results["rows"][0]["customers_id"] == cell(7)


def test_results_without_rows_are_malformed():
    with pytest.raises(GatewayError) as exc_info:
        normalize_results({"fields": {}})
    assert exc_info.value.kind is ErrorKind.MALFORMED_UPSTREAM_RESPONSE
