"""Pydantic data contracts shared by the engine and the HTTP layer."""

from crm_engine.schemas.customer import Customer
from crm_engine.schemas.directory import PageResult, QuerySpec, SortMode
from crm_engine.schemas.segment import (
    DEFAULT_RULES,
    ComparisonOperator,
    NumericCondition,
    PreviewRequest,
    PreviewResult,
    RuleSet,
    Segment,
    SegmentCreate,
)

__all__ = [
    "Customer",
    "QuerySpec",
    "SortMode",
    "PageResult",
    "ComparisonOperator",
    "NumericCondition",
    "RuleSet",
    "DEFAULT_RULES",
    "PreviewRequest",
    "PreviewResult",
    "SegmentCreate",
    "Segment",
]
