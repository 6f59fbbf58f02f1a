"""Pydantic schema for customer records read from the CRM backend."""

from datetime import UTC, datetime

from pydantic import AliasChoices, Field, field_validator

from crm_engine.schemas.common import CamelModel


def parse_tags(value: object) -> tuple[str, ...]:
    """Normalize a tag list or a comma-separated tag string.

    Entries are trimmed and blanks dropped; order is kept for display.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    cleaned = (str(tag).strip() for tag in value if tag is not None)
    return tuple(tag for tag in cleaned if tag)


class Customer(CamelModel):
    """Read-only snapshot of a customer record."""

    id: str = Field(alias="_id")
    name: str = ""
    email: str = ""
    phone: str | None = None
    total_spend: float = Field(default=0.0, ge=0)
    visits: int = Field(default=0, ge=0)
    tags: tuple[str, ...] = ()
    created_at: datetime | None = None
    last_active_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "lastActiveAt", "lastActive", "lastVisit", "last_active_at"
        ),
        serialization_alias="lastActiveAt",
    )

    @field_validator("total_spend", "visits", mode="before")
    @classmethod
    def absent_counts_as_zero(cls, v: object) -> object:
        return 0 if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: object) -> tuple[str, ...]:
        return parse_tags(v)

    @field_validator("created_at", "last_active_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def last_seen_at(self) -> datetime | None:
        """Reference time for inactivity: last activity, else creation."""
        return self.last_active_at or self.created_at
