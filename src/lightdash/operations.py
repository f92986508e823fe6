"""
Lightdash operation catalog

Declares every read-only operation exposed by the gateway: argument shape,
upstream request, cache class and whether result rows are normalized.
"""

from typing import Any, Dict
from urllib.parse import quote

from src.gateway.operations import OperationRegistry, OperationSpec, UpstreamRequest
from src.gateway.validation import ArgumentSchema, FieldSpec, uuid_field

from .fields import qualify_fields, qualify_filters, qualify_sorts

PROJECT_UUID = uuid_field("The UUID of the project. You can obtain it from the project list.")

DATE_ZOOM_GRANULARITIES = ("Day", "Week", "Month", "Quarter", "Year")
CATALOG_SEARCH_TYPES = ("table", "field")


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _project_path(arguments: Dict[str, Any], suffix: str = "") -> str:
    return f"/api/v1/projects/{_segment(arguments['projectUuid'])}{suffix}"


def _get(path_builder):
    return lambda arguments: UpstreamRequest(method="GET", path=path_builder(arguments))


def _project_only(description: str, name: str, suffix: str, cache_class: str) -> OperationSpec:
    return OperationSpec(
        name=name,
        description=description,
        schema=ArgumentSchema({"projectUuid": PROJECT_UUID}),
        build_request=_get(lambda args: _project_path(args, suffix)),
        cache_class=cache_class,
    )


def _table_schema() -> ArgumentSchema:
    return ArgumentSchema({
        "projectUuid": PROJECT_UUID,
        "table": FieldSpec(type="string", required=True, min_length=1,
                           description="Name of the table in the data catalog"),
    })


def _catalog_search_request(arguments: Dict[str, Any]) -> UpstreamRequest:
    params = {key: arguments[key] for key in ("search", "type", "limit", "page") if key in arguments}
    return UpstreamRequest(
        method="GET",
        path=_project_path(arguments, "/dataCatalog"),
        params=params or None,
    )


def _underlying_data_query_request(arguments: Dict[str, Any]) -> UpstreamRequest:
    explore_id = arguments["exploreId"]
    body: Dict[str, Any] = {
        "exploreName": explore_id,
        "dimensions": qualify_fields(arguments.get("dimensions"), explore_id),
        "metrics": qualify_fields(arguments.get("metrics"), explore_id),
        "filters": qualify_filters(arguments.get("filters"), explore_id),
        "sorts": qualify_sorts(arguments.get("sorts"), explore_id),
        "tableCalculations": arguments.get("tableCalculations", []),
    }
    if "limit" in arguments:
        body["limit"] = arguments["limit"]
    return UpstreamRequest(
        method="POST",
        path=_project_path(arguments, f"/explores/{_segment(explore_id)}/runUnderlyingDataQuery"),
        json_data=body,
    )


def _saved_chart_results_request(arguments: Dict[str, Any]) -> UpstreamRequest:
    body = {
        key: arguments[key]
        for key in ("invalidateCache", "dashboardFilters", "dateZoomGranularity")
        if key in arguments
    }
    return UpstreamRequest(
        method="POST",
        path=f"/api/v1/saved/{_segment(arguments['chartUuid'])}/results",
        json_data=body or None,
    )


def build_catalog() -> OperationRegistry:
    """
    Build the registry of Lightdash operations.

    Returns:
        OperationRegistry with every supported operation
    """
    registry = OperationRegistry()

    registry.register(OperationSpec(
        name="list_projects",
        description="List all projects in the Lightdash organization",
        schema=ArgumentSchema(),
        build_request=lambda args: UpstreamRequest(method="GET", path="/api/v1/org/projects"),
        cache_class="search",
    ))
    registry.register(_project_only(
        "Get details of a specific project", "get_project", "", "schema"))
    registry.register(_project_only(
        "List all spaces in a project", "list_spaces", "/spaces", "search"))
    registry.register(_project_only(
        "List all charts in a project", "list_charts", "/charts", "search"))
    registry.register(_project_only(
        "List all dashboards in a project", "list_dashboards", "/dashboards", "search"))
    registry.register(_project_only(
        "Get custom metrics for a project", "get_custom_metrics", "/custom-metrics", "schema"))
    registry.register(_project_only(
        "Get the data catalog for a project", "get_catalog", "/dataCatalog", "search"))
    registry.register(_project_only(
        "Get the metrics catalog for a project", "get_metrics_catalog", "/dataCatalog/metrics", "search"))
    registry.register(_project_only(
        "Get charts as code for a project", "get_charts_as_code", "/charts/code", "none"))
    registry.register(_project_only(
        "Get dashboards as code for a project", "get_dashboards_as_code", "/dashboards/code", "none"))

    registry.register(OperationSpec(
        name="get_metadata",
        description="Get metadata for a specific table in the data catalog",
        schema=_table_schema(),
        build_request=_get(lambda args: _project_path(args, f"/dataCatalog/{_segment(args['table'])}/metadata")),
        cache_class="schema",
    ))
    registry.register(OperationSpec(
        name="get_analytics",
        description="Get analytics for a specific table in the data catalog",
        schema=_table_schema(),
        build_request=_get(lambda args: _project_path(args, f"/dataCatalog/{_segment(args['table'])}/analytics")),
        cache_class="search",
    ))
    registry.register(OperationSpec(
        name="get_user_attributes",
        description="Get organization user attributes",
        schema=ArgumentSchema(),
        build_request=lambda args: UpstreamRequest(method="GET", path="/api/v1/org/attributes"),
        cache_class="schema",
    ))

    registry.register(OperationSpec(
        name="get_catalog_search",
        description="Search across catalog items (explores and fields) with filtering and pagination",
        schema=ArgumentSchema({
            "projectUuid": PROJECT_UUID,
            "search": FieldSpec(type="string", description="Search term"),
            "type": FieldSpec(type="string", enum=CATALOG_SEARCH_TYPES, description="Catalog item type"),
            "limit": FieldSpec(type="integer", minimum=1, maximum=1000, description="Page size"),
            "page": FieldSpec(type="integer", minimum=1, description="1-based page number"),
        }),
        build_request=_catalog_search_request,
        cache_class="search",
    ))
    registry.register(_project_only(
        "List all available explores with basic metadata - fast way to discover data models",
        "get_explores_summary", "/explores", "schema"))
    registry.register(OperationSpec(
        name="get_schema",
        description="Get complete explore schema with all metrics and dimensions - essential for building queries",
        schema=ArgumentSchema({
            "projectUuid": PROJECT_UUID,
            "exploreId": FieldSpec(type="string", required=True, min_length=1, description="Explore (table) name"),
        }),
        build_request=_get(lambda args: _project_path(args, f"/explores/{_segment(args['exploreId'])}")),
        cache_class="schema",
    ))

    registry.register(OperationSpec(
        name="run_underlying_data_query",
        description="Execute a query against an explore and return result rows",
        schema=ArgumentSchema({
            "projectUuid": PROJECT_UUID,
            "exploreId": FieldSpec(type="string", required=True, min_length=1, description="Explore (table) name"),
            "dimensions": FieldSpec(type="array", items=FieldSpec(type="string", min_length=1),
                                    description="Dimension field ids"),
            "metrics": FieldSpec(type="array", items=FieldSpec(type="string", min_length=1),
                                 description="Metric field ids"),
            "filters": FieldSpec(type="object", default={}, description="Dimension and metric filter groups"),
            "sorts": FieldSpec(type="array", items=FieldSpec(type="object"),
                               description="Sort rules: {fieldId, descending}"),
            "tableCalculations": FieldSpec(type="array", items=FieldSpec(type="object"),
                                           description="Table calculations"),
            "limit": FieldSpec(type="integer", minimum=1, maximum=5000, description="Maximum rows"),
        }),
        build_request=_underlying_data_query_request,
        cache_class="none",
        normalize_rows=True,
    ))
    registry.register(OperationSpec(
        name="get_saved_chart_results",
        description="Get results from an existing saved chart with applied filters",
        schema=ArgumentSchema({
            "chartUuid": uuid_field("The UUID of the saved chart"),
            "invalidateCache": FieldSpec(type="boolean", description="Bypass the Lightdash results cache"),
            "dashboardFilters": FieldSpec(type="object", description="Dashboard filters to apply"),
            "dateZoomGranularity": FieldSpec(type="string", enum=DATE_ZOOM_GRANULARITIES,
                                             description="Date zoom granularity"),
        }),
        build_request=_saved_chart_results_request,
        cache_class="none",
        normalize_rows=True,
    ))
    registry.register(OperationSpec(
        name="get_dashboard_by_uuid",
        description="Get complete dashboard details including all tiles and configuration",
        schema=ArgumentSchema({"dashboardUuid": uuid_field("The UUID of the dashboard")}),
        build_request=_get(lambda args: f"/api/v1/dashboards/{_segment(args['dashboardUuid'])}"),
        cache_class="schema",
    ))

    return registry
