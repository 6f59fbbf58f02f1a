"""Pydantic schemas for authenticated callers."""

from pydantic import BaseModel, Field


class TokenUser(BaseModel):
    """Caller identity decoded from a bearer token."""

    id: str
    username: str
    role: str
    email: str = ""
    # forwarded verbatim to the CRM backend
    token: str = Field(default="", repr=False, exclude=True)
