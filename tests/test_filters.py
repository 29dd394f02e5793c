from __future__ import annotations

import pytest

from population_core.filters import FilterSpecification, filter_records, normalize_filters


def test_empty_spec_returns_same_sequence(three_state_records):
    assert filter_records(three_state_records, FilterSpecification()) is three_state_records
    assert filter_records(three_state_records, None) is three_state_records


def test_state_filter_preserves_order(three_state_records):
    result = filter_records(three_state_records, FilterSpecification(states=("StateA",)))

    assert [r.state for r in result] == ["StateA"] * 4
    assert [r.value for r in result] == [100, 80, 120, 230]


def test_and_across_fields_or_within_field(three_state_records):
    spec = FilterSpecification(years=(2020, 2021), genders=("Male",), states=("StateA", "StateB"))
    result = filter_records(three_state_records, spec)

    assert [(r.year, r.state, r.value) for r in result] == [
        (2020, "StateA", 100),
        (2020, "StateB", 300),
        (2021, "StateA", 120),
    ]


def test_no_match_returns_empty_list(three_state_records):
    assert filter_records(three_state_records, FilterSpecification(months=("December",))) == []


@pytest.mark.parametrize(
    "spec",
    [
        FilterSpecification(states=("StateC",)),
        FilterSpecification(years=(2021,), months=("March",)),
        FilterSpecification(genders=("Total",)),
        FilterSpecification(),
    ],
)
def test_filter_is_idempotent(three_state_records, spec):
    once = filter_records(three_state_records, spec)
    assert list(filter_records(once, spec)) == list(once)


def test_normalize_filters_cleans_loose_input():
    spec = normalize_filters(
        {
            "years": ["2020", 2021, "bad", None, 2020, True],
            "months": [" May ", "", None, "May"],
            "states": ["StateA"],
        }
    )

    assert spec == FilterSpecification(years=(2020, 2021), months=("May",), states=("StateA",), genders=())
    assert normalize_filters(None).is_empty()
    assert normalize_filters({}).is_empty()
