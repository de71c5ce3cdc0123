"""Pydantic response models for user, chart and dashboard endpoints.

Every model validates straight from the metrics dataclasses
(``from_attributes``), so routers return ``Model.model_validate(record)``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from src.models.base import SportSeeBase


# ---------- User ----------

class UserProfileRead(SportSeeBase):
    id: int = Field(gt=0)
    first_name: str
    last_name: str
    age: int = Field(ge=0)


class NutritionCardRead(SportSeeBase):
    key: str
    label: str
    value: int = Field(ge=0)
    unit: str
    display: str


class UserOverviewRead(SportSeeBase):
    profile: UserProfileRead
    greeting_name: str
    percentage: int = Field(ge=0, le=100)
    nutrition: list[NutritionCardRead]


# ---------- Charts ----------

class ActivityPointRead(SportSeeBase):
    index: int = Field(ge=1)
    weight_kg: float
    calories_burned: int
    display_index: str


class SessionPointRead(SportSeeBase):
    position: int = Field(ge=0, le=8)
    duration_minutes: float
    is_ghost: bool
    label: str


class PerformancePointRead(SportSeeBase):
    category: str
    label: str
    value: float
    full_mark: float


class ScorePointRead(SportSeeBase):
    percentage: int = Field(ge=0, le=100)


# ---------- Dashboard ----------

class DashboardCharts(SportSeeBase):
    user: UserOverviewRead | None = None
    activity: list[ActivityPointRead] | None = None
    sessions: list[SessionPointRead] | None = None
    performance: list[PerformancePointRead] | None = None
    score: ScorePointRead | None = None


class DashboardRead(SportSeeBase):
    user_id: int
    origin: Literal["mock", "remote"]
    charts: DashboardCharts
    loading: bool
    has_error: bool
    errors: dict[str, str | None]
