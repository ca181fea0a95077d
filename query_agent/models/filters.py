"""Property filter models, keyed on the wire ``filter_type`` field."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Discriminator, Field, Tag, model_validator


class ComparisonOperator(str, Enum):
    EQUALS = "="
    LESS_THAN = "<"
    GREATER_THAN = ">"
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="
    NOT_EQUALS = "!="
    LIKE = "LIKE"
    CONTAINS_ANY = "contains_any"
    CONTAINS_ALL = "contains_all"


# Newer service releases may add operators; keep those as plain strings.
Operator = Annotated[Union[ComparisonOperator, str], Field(union_mode="left_to_right")]


class _PropertyFilterBase(BaseModel):
    property_name: str


class IntegerPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["integer"] = "integer"
    operator: Operator
    value: int | float


class IntegerArrayPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["integer_array"] = "integer_array"
    operator: Operator
    value: list[int | float]


class TextPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["text"] = "text"
    operator: Operator
    value: str


class TextArrayPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["text_array"] = "text_array"
    operator: Operator
    value: list[str]


class BooleanPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["boolean"] = "boolean"
    operator: Operator
    value: bool


class BooleanArrayPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["boolean_array"] = "boolean_array"
    operator: Operator
    value: list[bool]


class DateExactFilterValue(BaseModel):
    exact_timestamp: str
    operator: Operator | None = None


class DateRangeFilterValue(BaseModel):
    date_from: str | None = None
    date_to: str | None = None
    inclusive_from: bool | None = None
    inclusive_to: bool | None = None


def _date_value_tag(value: Any) -> str:
    if isinstance(value, dict):
        return "exact" if "exact_timestamp" in value else "range"
    return "exact" if isinstance(value, DateExactFilterValue) else "range"


class DateRangePropertyFilter(_PropertyFilterBase):
    filter_type: Literal["date_range"] = "date_range"
    value: Annotated[
        Union[
            Annotated[DateExactFilterValue, Tag("exact")],
            Annotated[DateRangeFilterValue, Tag("range")],
        ],
        Discriminator(_date_value_tag),
    ]


class DateArrayPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["date_array"] = "date_array"
    operator: Operator
    value: list[str]


class GeoPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["geo"] = "geo"
    latitude: float
    longitude: float
    max_distance_meters: float


class IsNullPropertyFilter(_PropertyFilterBase):
    filter_type: Literal["is_null"] = "is_null"
    is_null: bool


class UnknownPropertyFilter(_PropertyFilterBase):
    """A filter this client cannot represent. Only the property name is kept."""

    filter_type: Literal["unknown"] = "unknown"

    @model_validator(mode="before")
    @classmethod
    def _keep_property_name(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {"property_name": data.get("property_name", "")}
        return data


def date_value_is_usable(value: Any) -> bool:
    """Whether a wire ``date_range`` value names an exact timestamp or at least one bound."""
    if not isinstance(value, dict):
        return False
    if "exact_timestamp" in value:
        return True
    return value.get("date_from") is not None or value.get("date_to") is not None


_KNOWN_FILTER_TYPES = frozenset({
    "integer", "integer_array", "text", "text_array", "boolean", "boolean_array",
    "date_range", "date_array", "geo", "is_null",
})


def property_filter_tag(value: Any) -> str:
    if isinstance(value, dict):
        filter_type = value.get("filter_type")
        if filter_type not in _KNOWN_FILTER_TYPES:
            return "unknown"
        if filter_type == "date_range" and not date_value_is_usable(value.get("value")):
            return "unknown"
        return filter_type
    return getattr(value, "filter_type", "unknown")


PropertyFilter = Annotated[
    Union[
        Annotated[IntegerPropertyFilter, Tag("integer")],
        Annotated[IntegerArrayPropertyFilter, Tag("integer_array")],
        Annotated[TextPropertyFilter, Tag("text")],
        Annotated[TextArrayPropertyFilter, Tag("text_array")],
        Annotated[BooleanPropertyFilter, Tag("boolean")],
        Annotated[BooleanArrayPropertyFilter, Tag("boolean_array")],
        Annotated[DateRangePropertyFilter, Tag("date_range")],
        Annotated[DateArrayPropertyFilter, Tag("date_array")],
        Annotated[GeoPropertyFilter, Tag("geo")],
        Annotated[IsNullPropertyFilter, Tag("is_null")],
        Annotated[UnknownPropertyFilter, Tag("unknown")],
    ],
    Discriminator(property_filter_tag),
]


def map_api_property_filter(property_filter: BaseModel) -> dict[str, Any] | None:
    """Serialise a filter back to its wire form; unknown filters have none."""
    if isinstance(property_filter, UnknownPropertyFilter):
        return None
    return property_filter.model_dump(mode="json", exclude_none=True)
