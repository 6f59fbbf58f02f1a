"""Audience segmentation: rule evaluation and preview.

All functions are pure. ``now`` is always passed in so results do not
depend on the wall clock.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from itertools import islice
from typing import Any, assert_never

from pydantic import ValidationError

from crm_engine.exceptions import SelectionValidationError
from crm_engine.schemas.customer import Customer
from crm_engine.schemas.segment import (
    ComparisonOperator,
    PreviewResult,
    RuleSet,
    SegmentCreate,
)
from crm_engine.utils.logging import get_logger

logger = get_logger(__name__)

_ONE_DAY = timedelta(days=1)


def compare(operator: ComparisonOperator, actual: float, threshold: float) -> bool:
    """Apply ``operator`` to ``(actual, threshold)``."""
    match operator:
        case ComparisonOperator.gt:
            return actual > threshold
        case ComparisonOperator.lt:
            return actual < threshold
        case ComparisonOperator.gte:
            return actual >= threshold
        case ComparisonOperator.lte:
            return actual <= threshold
        case ComparisonOperator.eq:
            return actual == threshold
        case _:
            assert_never(operator)


def days_inactive(customer: Customer, now: datetime) -> int | None:
    """Whole days since the customer was last seen, or None if never seen."""
    last_seen = customer.last_seen_at
    if last_seen is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return (now - last_seen) // _ONE_DAY


def matches(customer: Customer, rules: RuleSet, now: datetime) -> bool:
    """True iff the customer satisfies every condition of ``rules``."""
    if not compare(rules.total_spend.operator, customer.total_spend, rules.total_spend.value):
        return False
    if not compare(rules.visits.operator, customer.visits, rules.visits.value):
        return False

    inactive = days_inactive(customer, now)
    return inactive is None or inactive > rules.inactive_days


def preview(
    customers: Iterable[Customer],
    rules: RuleSet,
    *,
    now: datetime,
    sample_size: int,
) -> PreviewResult:
    """Count matching customers and keep the first ``sample_size`` of them.

    The sample preserves the collection's order; nothing is re-sorted.
    """
    if sample_size < 0:
        raise SelectionValidationError("sample_size must be >= 0")

    matched = [c for c in customers if matches(c, rules, now)]
    logger.debug("Segment preview matched %d customer(s)", len(matched))
    return PreviewResult(
        count=len(matched),
        sample=list(islice(matched, sample_size)),
        sample_size=sample_size,
    )


def parse_rule_set(payload: Mapping[str, Any] | RuleSet) -> RuleSet:
    """Validate a serialized rule set, rejecting it whole on any error."""
    if isinstance(payload, RuleSet):
        return payload
    try:
        return RuleSet.model_validate(payload)
    except ValidationError as exc:
        raise SelectionValidationError.from_pydantic("rule set", exc) from exc


def build_segment_request(name: str, rules: Mapping[str, Any] | RuleSet) -> SegmentCreate:
    """Validate a segment before it is handed to the backend for storage.

    Identifiers and timestamps are assigned by the backend, not here.
    """
    rule_set = parse_rule_set(rules)
    if not isinstance(name, str) or not name.strip():
        raise SelectionValidationError(
            "Segment name must not be empty",
            [{"loc": ["name"], "msg": "Segment name must not be empty", "type": "value_error"}],
        )
    try:
        return SegmentCreate(name=name, rules=rule_set)
    except ValidationError as exc:
        raise SelectionValidationError.from_pydantic("segment", exc) from exc
