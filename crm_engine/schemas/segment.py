"""Pydantic schemas for segmentation rules, previews and segments."""

import enum
from datetime import UTC, datetime

from pydantic import Field, field_validator

from crm_engine.schemas.common import CamelModel
from crm_engine.schemas.customer import Customer


class ComparisonOperator(enum.StrEnum):
    gt = "gt"
    lt = "lt"
    gte = "gte"
    lte = "lte"
    eq = "eq"


class NumericCondition(CamelModel):
    """``{operator, value}`` applied to one numeric customer attribute."""

    operator: ComparisonOperator
    value: float = Field(strict=True, allow_inf_nan=False)


class RuleSet(CamelModel):
    """Segment definition; every condition must hold (logical AND).

    Wire shape::

        {"totalSpend": {"operator": "gt", "value": 5000},
         "visits": {"operator": "lt", "value": 3},
         "inactiveDays": 90}
    """

    total_spend: NumericCondition
    visits: NumericCondition
    inactive_days: int = Field(ge=0, strict=True)


DEFAULT_RULES = RuleSet(
    total_spend=NumericCondition(operator=ComparisonOperator.gt, value=5000),
    visits=NumericCondition(operator=ComparisonOperator.lt, value=3),
    inactive_days=90,
)


class PreviewRequest(CamelModel):
    """Request schema for an audience preview."""

    rules: RuleSet
    sample_size: int | None = Field(default=None, ge=0)


class PreviewResult(CamelModel):
    """Match count plus the first ``sample_size`` matches in collection order."""

    count: int = Field(ge=0)
    sample: list[Customer]
    sample_size: int = Field(ge=0)


class SegmentCreate(CamelModel):
    """Validated payload handed to the CRM backend for persistence."""

    name: str = Field(min_length=1, max_length=200)
    rules: RuleSet

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class Segment(CamelModel):
    """A persisted segment as returned by the CRM backend."""

    id: str = Field(alias="_id")
    name: str
    rules: RuleSet
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v
