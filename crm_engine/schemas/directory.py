"""Pydantic schemas for customer directory queries."""

import enum

from pydantic import Field, field_validator

from crm_engine.schemas.common import CamelModel, PaginatedResponse
from crm_engine.schemas.customer import Customer


class SortMode(enum.StrEnum):
    latest = "latest"
    oldest = "oldest"
    highest_spend = "highestSpend"
    most_visits = "mostVisits"


class QuerySpec(CamelModel):
    """Search, tag filter, sort order and page of a directory listing."""

    search_text: str = ""
    tag_filter: str | None = None
    sort_mode: SortMode = SortMode.latest
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, gt=0)

    @field_validator("tag_filter", mode="before")
    @classmethod
    def blank_tag_means_all(cls, v: object) -> object:
        # the dashboard sends "" for "All Tags"
        return None if v == "" else v


class PageResult(PaginatedResponse):
    """One page of the filtered and sorted directory."""

    items: list[Customer]
