from __future__ import annotations

from population_core.config import MONTH_ORDER
from population_core.data import PopulationRecord
from population_core.metrics import DerivedViews, aggregate


def test_example_rows(example_records):
    views = aggregate(example_records)

    # State totals count "Total" rows too.
    assert views.top_states == [{"state": "StateA", "population": 300}]
    assert views.gender_distribution == [
        {"gender": "Male", "value": 100, "percentage": "66.7"},
        {"gender": "Female", "value": 50, "percentage": "33.3"},
    ]
    assert views.state_gender_gaps == [
        {"state": "StateA", "male": 100, "female": 50, "gap": 50, "gap_percentage": "33.3"}
    ]
    assert views.yearly_trends == [{"year": 2020, "Male": 100, "Female": 50}]
    assert views.records is example_records


def test_monthly_distribution_is_fixed_calendar_shape(three_state_records):
    views = aggregate(three_state_records)

    assert [m["month"] for m in views.monthly_distribution] == list(MONTH_ORDER)
    by_month = {m["month"]: m["value"] for m in views.monthly_distribution}
    assert by_month["January"] == 100 + 80 + 300 + 250
    assert by_month["March"] == 120 + 40 + 90
    assert by_month["July"] == 230
    assert by_month["December"] == 0


def test_gender_distribution_sums_gender_specific_rows(three_state_records):
    views = aggregate(three_state_records)

    expected = sum(r.value for r in three_state_records if r.gender in ("Male", "Female"))
    assert sum(g["value"] for g in views.gender_distribution) == expected
    assert [g["gender"] for g in views.gender_distribution] == ["Male", "Female"]


def test_top_states_limit_and_stable_ties():
    records = [PopulationRecord(2020, "May", f"S{i:02d}", "Male", 10) for i in range(12)]
    records.append(PopulationRecord(2020, "May", "Big", "Total", 50))

    views = aggregate(records)

    assert len(views.top_states) == 10
    assert views.top_states[0] == {"state": "Big", "population": 50}
    assert [s["state"] for s in views.top_states[1:]] == [f"S{i:02d}" for i in range(9)]


def test_gaps_sorted_by_gap_and_yearly_trends_by_year(three_state_records):
    views = aggregate(three_state_records)

    assert views.state_gender_gaps == [
        {"state": "StateA", "male": 220, "female": 80, "gap": 140, "gap_percentage": "46.7"},
        {"state": "StateB", "male": 300, "female": 250, "gap": 50, "gap_percentage": "9.1"},
        {"state": "StateC", "male": 0, "female": 40, "gap": 40, "gap_percentage": "100.0"},
    ]
    assert views.yearly_trends == [
        {"year": 2020, "Male": 400, "Female": 330},
        {"year": 2021, "Male": 120, "Female": 40},
    ]


def test_other_gender_labels_count_toward_gender_views():
    records = [
        PopulationRecord(2022, "June", "StateA", "Other", 30),
        PopulationRecord(2023, "June", "StateA", "Male", 70),
    ]
    views = aggregate(records)

    assert views.gender_distribution == [
        {"gender": "Male", "value": 70, "percentage": "70.0"},
        {"gender": "Other", "value": 30, "percentage": "30.0"},
    ]
    assert views.yearly_trends == [
        {"year": 2022, "Male": 0, "Female": 0},
        {"year": 2023, "Male": 70, "Female": 0},
    ]


def test_zero_gender_total_formats_as_zero():
    records = [
        PopulationRecord(2022, "June", "StateA", "Male", 0),
        PopulationRecord(2022, "June", "StateA", "Female", 0),
    ]
    views = aggregate(records)

    assert [g["percentage"] for g in views.gender_distribution] == ["0.0", "0.0"]
    assert views.state_gender_gaps[0]["gap_percentage"] == "0.0"


def test_only_total_rows_leaves_gender_views_empty():
    records = [PopulationRecord(2020, "May", "StateA", "Total", 500)]
    views = aggregate(records)

    assert views.top_states == [{"state": "StateA", "population": 500}]
    assert views.gender_distribution == []
    assert views.yearly_trends == []
    assert views.state_gender_gaps == []
    assert views.insights is not None


def test_available_filters_sorted(three_state_records):
    views = aggregate(three_state_records)

    assert views.available_filters == {
        "years": [2020, 2021, 2025],
        "months": ["January", "July", "March"],
        "states": ["StateA", "StateB", "StateC"],
        "genders": ["Female", "Male", "Total"],
    }


def test_empty_input_yields_empty_views():
    views = aggregate([])

    assert views.top_states == []
    assert views.gender_distribution == []
    assert views.yearly_trends == []
    assert views.monthly_distribution == []
    assert views.state_gender_gaps == []
    assert views.insights is None
    assert views.available_filters == {"years": [], "months": [], "states": [], "genders": []}


def test_aggregate_is_deterministic(three_state_records):
    assert aggregate(three_state_records) == aggregate(three_state_records)


def test_as_payload_is_plain_data(example_records):
    payload = aggregate(example_records).as_payload()

    assert payload["record_count"] == 3
    assert payload["insights"]["top_state"] == "StateA"
    assert "records" not in payload
    assert DerivedViews().as_payload()["insights"] is None
