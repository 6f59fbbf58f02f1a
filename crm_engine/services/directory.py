"""Customer directory pipeline: search, tag filter, sort, paginate.

Every call recomputes from scratch over the given collection.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, assert_never

from pydantic import ValidationError

from crm_engine.exceptions import SelectionValidationError
from crm_engine.schemas.customer import Customer
from crm_engine.schemas.directory import PageResult, QuerySpec, SortMode
from crm_engine.utils.logging import get_logger

logger = get_logger(__name__)


def parse_query_spec(payload: Mapping[str, Any] | QuerySpec) -> QuerySpec:
    """Validate a serialized query spec, rejecting it whole on any error."""
    if isinstance(payload, QuerySpec):
        return payload
    try:
        return QuerySpec.model_validate(payload)
    except ValidationError as exc:
        raise SelectionValidationError.from_pydantic("query spec", exc) from exc


def search(customers: Iterable[Customer], text: str) -> list[Customer]:
    """Case-insensitive substring match on name, email or phone."""
    if not text:
        return list(customers)
    needle = text.casefold()
    return [
        c
        for c in customers
        if needle in c.name.casefold()
        or needle in c.email.casefold()
        or (c.phone is not None and needle in c.phone.casefold())
    ]


def filter_by_tag(customers: Iterable[Customer], tag: str | None) -> list[Customer]:
    """Keep customers carrying exactly ``tag``; None keeps everyone."""
    if tag is None:
        return list(customers)
    return [c for c in customers if tag in c.tags]


def _by_creation(customers: Sequence[Customer], *, newest_first: bool) -> list[Customer]:
    # Records without createdAt fall back to their identifier and are
    # listed after every timestamped record.
    dated = [c for c in customers if c.created_at is not None]
    undated = [c for c in customers if c.created_at is None]
    dated.sort(key=lambda c: c.created_at, reverse=newest_first)
    undated.sort(key=lambda c: c.id, reverse=newest_first)
    return dated + undated


def sort_customers(customers: Sequence[Customer], mode: SortMode) -> list[Customer]:
    """Stable sort; ties keep their post-filter order."""
    match mode:
        case SortMode.latest:
            return _by_creation(customers, newest_first=True)
        case SortMode.oldest:
            return _by_creation(customers, newest_first=False)
        case SortMode.highest_spend:
            return sorted(customers, key=lambda c: c.total_spend, reverse=True)
        case SortMode.most_visits:
            return sorted(customers, key=lambda c: c.visits, reverse=True)
        case _:
            assert_never(mode)


def paginate(customers: Sequence[Customer], page: int, page_size: int) -> PageResult:
    """Slice one page, clamping ``page`` into ``[1, total_pages]``."""
    total = len(customers)
    total_pages = PageResult.page_count(total, page_size)
    current = min(max(page, 1), total_pages)
    start = (current - 1) * page_size
    return PageResult.paginate(
        items=list(customers[start : start + page_size]),
        total=total,
        page=current,
        size=page_size,
    )


def query(customers: Iterable[Customer], spec: QuerySpec) -> PageResult:
    """Run search, tag filter, sort and pagination in that order."""
    selected = search(customers, spec.search_text)
    selected = filter_by_tag(selected, spec.tag_filter)
    ordered = sort_customers(selected, spec.sort_mode)
    result = paginate(ordered, spec.page, spec.page_size)
    logger.debug(
        "Directory query matched %d customer(s), page %d/%d",
        result.total_matches,
        result.current_page,
        result.total_pages,
    )
    return result


def distinct_tags(customers: Iterable[Customer]) -> list[str]:
    """Every tag used in the collection once, in first-seen order."""
    return list(dict.fromkeys(tag for c in customers for tag in c.tags if tag))
