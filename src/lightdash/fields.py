"""
Field id qualification for explore queries

Lightdash addresses explore fields as ``<exploreId>_<field>``. Callers may pass
bare field names; these helpers add the explore prefix where it is missing.
"""

from typing import Any, Dict, List, Optional

from src.logging import get_logger

logger = get_logger('FIELDS')


def qualify_field_id(field_id: str, explore_id: str) -> str:
    if field_id.startswith(f"{explore_id}_"):
        return field_id
    return f"{explore_id}_{field_id}"


def qualify_fields(fields: Optional[List[str]], explore_id: str) -> List[str]:
    if not fields:
        return []
    qualified = [qualify_field_id(field_id, explore_id) for field_id in fields]
    logger.debug(f"qualified fields | {fields} -> {qualified}")
    return qualified


def _qualify_filter_group(group: Any, explore_id: str) -> Any:
    if not isinstance(group, dict):
        return group

    qualified = dict(group)
    for combinator in ("and", "or"):
        rules = group.get(combinator)
        if not isinstance(rules, list):
            continue
        qualified[combinator] = []
        for rule in rules:
            target = rule.get("target") if isinstance(rule, dict) else None
            if isinstance(target, dict) and isinstance(target.get("fieldId"), str):
                rule = {**rule, "target": {**target, "fieldId": qualify_field_id(target["fieldId"], explore_id)}}
            qualified[combinator].append(rule)
    return qualified


def qualify_filters(filters: Optional[Dict[str, Any]], explore_id: str) -> Dict[str, Any]:
    """
    Qualify the fieldId of every dimension and metric filter rule.
    """
    if not isinstance(filters, dict):
        return {}

    qualified = dict(filters)
    for section in ("dimensions", "metrics"):
        if section in filters:
            qualified[section] = _qualify_filter_group(filters[section], explore_id)
    return qualified


def qualify_sorts(sorts: Optional[List[Dict[str, Any]]], explore_id: str) -> List[Dict[str, Any]]:
    if not sorts:
        return []
    return [
        {**sort, "fieldId": qualify_field_id(sort["fieldId"], explore_id)}
        if isinstance(sort.get("fieldId"), str) else dict(sort)
        for sort in sorts
    ]
