from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    years: List[int] = Field(default_factory=list)
    months: List[str] = Field(default_factory=list)
    states: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)


class MetaFiltersResponse(BaseModel):
    years: List[int]
    months: List[str]
    states: List[str]
    genders: List[str]


class RefreshResponse(BaseModel):
    reloaded: bool
    records: int
    warnings: int
