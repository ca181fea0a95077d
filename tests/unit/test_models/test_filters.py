"""Unit tests for property filter parsing and serialisation."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter

from query_agent.models.filters import (
    BooleanArrayPropertyFilter,
    ComparisonOperator,
    DateExactFilterValue,
    DateRangeFilterValue,
    DateRangePropertyFilter,
    GeoPropertyFilter,
    IsNullPropertyFilter,
    PropertyFilter,
    TextPropertyFilter,
    UnknownPropertyFilter,
    map_api_property_filter,
)

_adapter = TypeAdapter(PropertyFilter)


@pytest.mark.parametrize(
    "raw, expected_type",
    [
        ({"filter_type": "text", "property_name": "title", "operator": "LIKE", "value": "*ai*"}, TextPropertyFilter),
        ({"filter_type": "boolean_array", "property_name": "flags", "operator": "contains_any", "value": [True]},
         BooleanArrayPropertyFilter),
        ({"filter_type": "geo", "property_name": "loc", "latitude": 52.5, "longitude": 13.4, "max_distance_meters": 100},
         GeoPropertyFilter),
        ({"filter_type": "is_null", "property_name": "deleted_at", "is_null": True}, IsNullPropertyFilter),
    ],
)
def test_filter_variant_is_chosen_by_filter_type(raw, expected_type):
    assert isinstance(_adapter.validate_python(raw), expected_type)


def test_known_operators_become_enum_members():
    parsed = _adapter.validate_python(
        {"filter_type": "text", "property_name": "title", "operator": "=", "value": "x"}
    )
    assert parsed.operator is ComparisonOperator.EQUALS


def test_unrecognised_operator_is_kept_as_string():
    parsed = _adapter.validate_python(
        {"filter_type": "text", "property_name": "title", "operator": "within_geo", "value": "x"}
    )
    assert parsed.operator == "within_geo"


def test_date_range_exact_and_bounded_values():
    exact = _adapter.validate_python({
        "filter_type": "date_range",
        "property_name": "published",
        "value": {"exact_timestamp": "2024-01-01T00:00:00Z", "operator": ">="},
    })
    bounded = _adapter.validate_python({
        "filter_type": "date_range",
        "property_name": "published",
        "value": {"date_from": "2024-01-01T00:00:00Z", "inclusive_from": True},
    })

    assert isinstance(exact, DateRangePropertyFilter)
    assert isinstance(exact.value, DateExactFilterValue)
    assert isinstance(bounded.value, DateRangeFilterValue)
    assert bounded.value.date_to is None


def test_date_range_exact_timestamp_without_operator():
    raw = {
        "filter_type": "date_range",
        "property_name": "published",
        "value": {"exact_timestamp": "2024-01-01"},
    }
    parsed = _adapter.validate_python(raw)

    assert isinstance(parsed.value, DateExactFilterValue)
    assert parsed.value.exact_timestamp == "2024-01-01"
    assert parsed.value.operator is None
    assert map_api_property_filter(parsed) == raw


def test_date_range_without_bounds_is_unknown():
    parsed = _adapter.validate_python({
        "filter_type": "date_range",
        "property_name": "published",
        "value": {"date_from": None, "date_to": None},
    })
    assert parsed == UnknownPropertyFilter(property_name="published")


def test_unknown_filter_type_keeps_property_name():
    parsed = _adapter.validate_python(
        {"filter_type": "vector_distance", "property_name": "embedding", "value": 0.3}
    )
    assert isinstance(parsed, UnknownPropertyFilter)
    assert parsed.property_name == "embedding"
    assert parsed.filter_type == "unknown"


def test_wire_form_round_trips_known_filters():
    raw = {"filter_type": "integer_array", "property_name": "year", "operator": "contains_all", "value": [2020, 2021]}
    assert map_api_property_filter(_adapter.validate_python(raw)) == raw


def test_unknown_filters_have_no_wire_form():
    assert map_api_property_filter(UnknownPropertyFilter(property_name="x")) is None
