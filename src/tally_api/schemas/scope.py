"""Pydantic v2 schema for an identity's resolved access scope."""

from pydantic import BaseModel, Field


class ScopeResponse(BaseModel):
    """Departments the calling identity may submit for and view."""

    username: str
    role: str
    unrestricted: bool
    department_codes: list[int] = Field(default_factory=list, description="Sorted; empty when unrestricted")
