"""Pydantic v2 schemas for identity management."""

from pydantic import BaseModel, EmailStr, Field

from tally_api.core.roles import ROLE_PATTERN


class IdentityCreateRequest(BaseModel):
    """Request to register an operator identity."""

    username: str = Field(min_length=3, max_length=100)
    email: EmailStr | None = None
    role: str = Field(pattern=ROLE_PATTERN)

