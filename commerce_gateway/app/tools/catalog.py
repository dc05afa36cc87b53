"""게이트웨이가 노출하는 고정 도구 목록이에요.

`ToolCatalog`는 프로세스 시작 시 한 번 만들어지고 이후에는 읽기만 해요.
`tools/list`는 항상 같은 순서로 같은 목록을 돌려줘요.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator
from typing import Any

from commerce_gateway.app.backend_client import HttpMethod
from commerce_gateway.app.tools.base import ArgumentKind, ArgumentSpec, ToolSpec
from commerce_gateway.app.tools.query_settings import DEFAULT_TOP, SUGGESTION_TOP


class ToolCatalog:
    def __init__(self, specs: Iterable[ToolSpec]) -> None:
        tools: dict[str, ToolSpec] = {}
        for spec in specs:
            if spec.name in tools:
                raise ValueError(f"도구 이름이 중복됐어요: {spec.name}")
            tools[spec.name] = spec
        self._tools = tools
        self._definitions = tuple(spec.to_definition() for spec in tools.values())

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def list_definitions(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(definition) for definition in self._definitions]

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def _channel_id() -> ArgumentSpec:
    return ArgumentSpec("channelId", ArgumentKind.INTEGER, "Channel identifier")


def _catalog_id() -> ArgumentSpec:
    return ArgumentSpec("catalogId", ArgumentKind.INTEGER, "Catalog identifier")


def _record_id() -> ArgumentSpec:
    return ArgumentSpec("recordId", ArgumentKind.INTEGER, "Product record identifier")


def _product_ids(description: str = "Array of product record identifiers") -> ArgumentSpec:
    return ArgumentSpec("productIds", ArgumentKind.INTEGER_ARRAY, description)


def _customer_account_number() -> ArgumentSpec:
    return ArgumentSpec(
        "customerAccountNumber",
        ArgumentKind.STRING,
        "Customer account number (optional)",
        required=False,
    )


_PRODUCT_SEARCH_CRITERIA_PROPERTIES: dict[str, Any] = {
    "channelId": {"type": "integer", "description": "Channel identifier"},
    "catalogId": {"type": "integer", "description": "Catalog identifier"},
    "categoryId": {"type": "integer", "description": "Category identifier"},
    "searchCondition": {"type": "string", "description": "Search condition"},
    "searchText": {"type": "string", "description": "Search text"},
    "includeProductsFromSubcategories": {
        "type": "boolean",
        "description": "Include products from subcategories",
    },
    "skipVariantExpansion": {"type": "boolean", "description": "Skip variant expansion"},
}

_CUSTOMER_SEARCH_CRITERIA_PROPERTIES: dict[str, Any] = {
    "searchText": {"type": "string", "description": "General search text to find customers"},
    "accountNumber": {"type": "string", "description": "Customer account number"},
    "email": {"type": "string", "description": "Customer email address"},
    "phone": {"type": "string", "description": "Customer phone number"},
    "extensionProperties": {
        "type": "array",
        "description": "Additional search properties",
        "items": {
            "type": "object",
            "properties": {
                "key": {"type": "string", "description": "Property key"},
                "value": {"type": "object", "description": "Property value"},
            },
            "required": ["key", "value"],
        },
    },
}


def build_default_tool_specs() -> list[ToolSpec]:
    return [
        # 상품 검색/조회
        ToolSpec(
            name="products_search",
            title="Product Search",
            description=(
                "Search for products using advanced ProductSearchCriteria with OData query support "
                "- D365 Commerce CSU Products/Search"
            ),
            method=HttpMethod.POST,
            path="Products/Search",
            operation="Products/Search",
            arguments=(
                ArgumentSpec(
                    "productSearchCriteria",
                    ArgumentKind.OBJECT,
                    "ProductSearchCriteria object based on D365 Commerce metadata",
                    properties=_PRODUCT_SEARCH_CRITERIA_PROPERTIES,
                ),
            ),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_get_by_id",
            title="Get Product By Id",
            description="Get a SimpleProduct by its record identifier - D365 Commerce CSU Products/GetById",
            method=HttpMethod.GET,
            path="Products/GetById(recordId={recordId},channelId={channelId})",
            operation="Products/GetById",
            arguments=(_record_id(), _channel_id()),
        ),
        ToolSpec(
            name="products_get_by_ids",
            title="Get Products By Ids",
            description="Get multiple products by their record identifiers - D365 Commerce CSU Products/GetByIds",
            method=HttpMethod.POST,
            path="Products/GetByIds",
            operation="Products/GetByIds",
            arguments=(_channel_id(), _product_ids()),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_get_recommended",
            title="Recommended Products",
            description="Get product recommendations - D365 Commerce CSU Products/GetRecommendedProducts",
            method=HttpMethod.POST,
            path="Products/GetRecommendedProducts",
            operation="Products/GetRecommendedProducts",
            arguments=(_product_ids(), _customer_account_number()),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_compare",
            title="Compare Products",
            description="Compare products for detailed analysis - D365 Commerce CSU Products/Compare",
            method=HttpMethod.POST,
            path="Products/Compare",
            operation="Products/Compare",
            arguments=(
                _channel_id(),
                _catalog_id(),
                _product_ids("Array of product record identifiers to compare"),
            ),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_search_by_category",
            title="Search Products By Category",
            description="Search products within a specific category - D365 Commerce CSU Products/SearchByCategory",
            method=HttpMethod.POST,
            path="Products/SearchByCategory",
            operation="Products/SearchByCategory",
            arguments=(
                _channel_id(),
                _catalog_id(),
                ArgumentSpec("categoryId", ArgumentKind.INTEGER, "Category identifier"),
            ),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_search_by_text",
            title="Search Products By Text",
            description="Search products using text search - D365 Commerce CSU Products/SearchByText",
            method=HttpMethod.POST,
            path="Products/SearchByText",
            operation="Products/SearchByText",
            arguments=(
                _channel_id(),
                _catalog_id(),
                ArgumentSpec("searchText", ArgumentKind.STRING, "Search text to find products"),
            ),
            default_top=DEFAULT_TOP,
        ),
        # 검색 보조
        ToolSpec(
            name="products_get_search_suggestions",
            title="Search Suggestions",
            description=(
                "Get recommended search phrases based on partial search text "
                "- D365 Commerce CSU Products/GetSearchSuggestions"
            ),
            method=HttpMethod.POST,
            path="Products/GetSearchSuggestions",
            operation="Products/GetSearchSuggestions",
            arguments=(
                _channel_id(),
                _catalog_id(),
                ArgumentSpec("searchText", ArgumentKind.STRING, "Partial search text"),
                ArgumentSpec(
                    "hitPrefix",
                    ArgumentKind.STRING,
                    "Prefix for highlighting (optional)",
                    required=False,
                    default="",
                ),
                ArgumentSpec(
                    "hitSuffix",
                    ArgumentKind.STRING,
                    "Suffix for highlighting (optional)",
                    required=False,
                    default="",
                ),
            ),
            default_top=SUGGESTION_TOP,
        ),
        ToolSpec(
            name="products_get_refiners_by_category",
            title="Refiners By Category",
            description=(
                "Get product refiners available for category products "
                "- D365 Commerce CSU Products/GetRefinersByCategory"
            ),
            method=HttpMethod.POST,
            path="Products/GetRefinersByCategory",
            operation="Products/GetRefinersByCategory",
            arguments=(
                _catalog_id(),
                ArgumentSpec("categoryId", ArgumentKind.INTEGER, "Category identifier"),
            ),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_get_refiners_by_text",
            title="Refiners By Text",
            description=(
                "Get product refiners available for text search results "
                "- D365 Commerce CSU Products/GetRefinersByText"
            ),
            method=HttpMethod.POST,
            path="Products/GetRefinersByText",
            operation="Products/GetRefinersByText",
            arguments=(
                _catalog_id(),
                ArgumentSpec("searchText", ArgumentKind.STRING, "Search text"),
            ),
            default_top=DEFAULT_TOP,
        ),
        # 차원/변형
        ToolSpec(
            name="products_get_dimension_values",
            title="Dimension Values",
            description=(
                "Get dimension values for a product based on specified requirements "
                "- D365 Commerce CSU Products/GetDimensionValues"
            ),
            method=HttpMethod.POST,
            path="Products/GetDimensionValues",
            operation="Products/GetDimensionValues",
            arguments=(
                _record_id(),
                _channel_id(),
                ArgumentSpec(
                    "dimension",
                    ArgumentKind.INTEGER,
                    "Dimension type (e.g., Color=1, Size=2, Style=3, Config=4)",
                ),
                ArgumentSpec(
                    "matchingDimensionValues",
                    ArgumentKind.OBJECT_ARRAY,
                    "Array of existing dimension values to match against",
                    required=False,
                    default=[],
                ),
            ),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_get_variants_by_dimension_values",
            title="Variants By Dimension Values",
            description=(
                "Get product variations based on specified dimension requirements "
                "- D365 Commerce CSU Products/GetVariantsByDimensionValues"
            ),
            method=HttpMethod.POST,
            path="Products/GetVariantsByDimensionValues",
            operation="Products/GetVariantsByDimensionValues",
            arguments=(
                _record_id(),
                _channel_id(),
                ArgumentSpec(
                    "matchingDimensionValues",
                    ArgumentKind.OBJECT_ARRAY,
                    "Array of dimension values to match for finding variants",
                ),
            ),
            default_top=DEFAULT_TOP,
        ),
        # 상품 정보
        ToolSpec(
            name="products_get_attribute_values",
            title="Attribute Values",
            description=(
                "Get attribute values of the specified product - D365 Commerce CSU Products/GetAttributeValues"
            ),
            method=HttpMethod.POST,
            path="Products/GetAttributeValues",
            operation="Products/GetAttributeValues",
            arguments=(_record_id(), _channel_id(), _catalog_id()),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_get_price",
            title="Product Price",
            description=(
                "Get the price of a product in context of the current customer - D365 Commerce CSU Products/GetPrice"
            ),
            method=HttpMethod.GET,
            path="Products/GetPrice(recordId={recordId})",
            operation="Products/GetPrice",
            arguments=(
                _record_id(),
                _customer_account_number(),
                ArgumentSpec(
                    "unitOfMeasureSymbol",
                    ArgumentKind.STRING,
                    "Unit of measure symbol (optional)",
                    required=False,
                ),
            ),
        ),
        ToolSpec(
            name="products_get_availability",
            title="Product Availability",
            description=(
                "Get available inventory for given list of items for given channel and customer "
                "- D365 Commerce CSU Products/GetProductAvailabilities"
            ),
            method=HttpMethod.POST,
            path="Products/GetProductAvailabilities",
            operation="Products/GetProductAvailabilities",
            arguments=(
                ArgumentSpec("itemIds", ArgumentKind.INTEGER_ARRAY, "Array of item identifiers"),
                _channel_id(),
            ),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_get_media_locations",
            title="Media Locations",
            description="Get media locations for the specified product - D365 Commerce CSU Products/GetMediaLocations",
            method=HttpMethod.POST,
            path="Products/GetMediaLocations",
            operation="Products/GetMediaLocations",
            arguments=(_record_id(), _channel_id(), _catalog_id()),
            default_top=DEFAULT_TOP,
        ),
        ToolSpec(
            name="products_get_units_of_measure",
            title="Units Of Measure",
            description="Get units of measure for the specified product - D365 Commerce CSU Products/GetUnitsOfMeasure",
            method=HttpMethod.POST,
            path="Products/GetUnitsOfMeasure",
            operation="Products/GetUnitsOfMeasure",
            arguments=(_record_id(),),
            default_top=DEFAULT_TOP,
        ),
        # 고객
        ToolSpec(
            name="customer_search",
            title="Customer Search",
            description=(
                "Search for customers in D365 Commerce based on search criteria. Supports filtering by "
                "account number, email, phone, or general search text with paging and sorting options."
            ),
            method=HttpMethod.POST,
            path="Customers/Search",
            operation="Customers/Search",
            arguments=(
                ArgumentSpec(
                    "customerSearchCriteria",
                    ArgumentKind.OBJECT,
                    "Search criteria for finding customers",
                    properties=_CUSTOMER_SEARCH_CRITERIA_PROPERTIES,
                ),
            ),
            default_top=DEFAULT_TOP,
        ),
    ]


def build_default_catalog() -> ToolCatalog:
    """기본 Commerce 도구 18개가 등록된 `ToolCatalog`를 만들어요."""
    return ToolCatalog(build_default_tool_specs())
