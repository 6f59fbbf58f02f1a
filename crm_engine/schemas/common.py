"""Common schemas shared across the API."""

from math import ceil

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PaginatedResponse(CamelModel):
    """Base paginated response."""

    total_matches: int = Field(ge=0)
    total_pages: int = Field(ge=1)
    current_page: int = Field(ge=1)
    page_size: int = Field(gt=0)

    @staticmethod
    def page_count(total: int, size: int) -> int:
        """Number of pages for ``total`` items; an empty result still has one page."""
        return max(1, ceil(total / size))

    @classmethod
    def paginate(cls, *, items: list, total: int, page: int, size: int, **kwargs):
        """Build a paginated response with automatic page count."""
        return cls(
            items=items,
            total_matches=total,
            total_pages=cls.page_count(total, size),
            current_page=page,
            page_size=size,
            **kwargs,
        )
