"""
Request/response models.

JSON keys are camelCase (``heartRate``, ``fitFiles``, ``avgPower``) because
that's what the chart front-end reads; Python attribute names stay
snake_case. Models validate from dataclasses and SQLModel rows via
``from_attributes``.
"""
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Series & stats ───────────────────────────────────────────────────────────

class SampleOut(CamelModel):
    index: int
    # ints stay ints in JSON (200, not 200.0)
    power: Union[int, float]
    cadence: Union[int, float]
    heart_rate: Union[int, float]
    speed: float
    altitude: float
    timestamp: Any = None


class SampleSeriesOut(CamelModel):
    name: str
    samples: List[SampleOut]


class StatRowOut(CamelModel):
    file_name: str
    avg_power: Optional[int]
    weighted_power: Optional[int]
    max_power: Optional[int]
    avg_heart_rate: Optional[int]
    avg_cadence: Optional[int]
    avg_speed: Optional[float]
    distance: float
    ascent: int


class ComparisonOut(CamelModel):
    series: List[SampleSeriesOut]
    stats: List[StatRowOut]


# ─── Datasets ─────────────────────────────────────────────────────────────────

class FitFileRead(CamelModel):
    id: int
    name: str
    dataset_id: int
    created_at: datetime


class DatasetRead(CamelModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime
    share_token: Optional[str] = None
    fit_files: List[FitFileRead]


class SharedDatasetRead(CamelModel):
    """Public view of a shared dataset: no owner details, no share token."""

    id: int
    name: str
    created_at: datetime
    fit_files: List[FitFileRead]


class DatasetRename(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Dataset name must not be blank")
        return value


class ShareTokenOut(CamelModel):
    share_token: str


# ─── Account ──────────────────────────────────────────────────────────────────

class UserRead(CamelModel):
    id: int
    email: Optional[str]
    created_at: datetime


class MessageOut(BaseModel):
    message: str
