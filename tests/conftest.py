from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from population_core.data import PopulationRecord, parse_population_csv


HEADER = "year,month,state,gender,value,unit,note"


def make_csv(rows: List[str], header: str = HEADER) -> str:
    return "\n".join([header] + rows) + "\n"


@pytest.fixture
def example_records() -> List[PopulationRecord]:
    return [
        PopulationRecord(2020, "January", "StateA", "Male", 100),
        PopulationRecord(2020, "January", "StateA", "Female", 50),
        PopulationRecord(2020, "January", "StateA", "Total", 150),
    ]


@pytest.fixture
def three_state_csv() -> str:
    return make_csv(
        [
            "2020,January,StateA,Male,100,Persons,",
            "2020,January,StateA,Female,80,Persons,",
            "2020,January,StateB,Male,300,Persons,",
            "2021,March,StateA,Male,120,Persons,",
            "2020,January,StateB,Female,250,Persons,",
            "2021,March,StateC,Female,40,Persons,",
            "2021,March,StateC,Total,90,Persons,",
            "2025,July,StateA,Total,230,Persons,note",
        ]
    )


@pytest.fixture
def three_state_records(three_state_csv) -> tuple:
    return parse_population_csv(three_state_csv).records


class FakeLoader:
    """Stands in for load_population_data; fails while `error` is set."""

    def __init__(self, text: str, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls = 0

    def __call__(self, source: Optional[str] = None) -> Dict[str, object]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        result = parse_population_csv(self.text)
        return {"source": source or "memory", "records": result.records, "warnings": list(result.warnings)}
