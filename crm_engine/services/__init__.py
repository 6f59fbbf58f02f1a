"""Selection engine: rule evaluation and directory queries."""

from crm_engine.services.directory import distinct_tags, parse_query_spec, query
from crm_engine.services.segmentation import (
    build_segment_request,
    compare,
    matches,
    parse_rule_set,
    preview,
)

__all__ = [
    "compare",
    "matches",
    "preview",
    "parse_rule_set",
    "build_segment_request",
    "query",
    "distinct_tags",
    "parse_query_spec",
]
