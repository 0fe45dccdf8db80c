"""Common Pydantic v2 schemas shared across the API."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error message")
    code: str | None = Field(default=None, description="Machine-readable error code")
    validation_errors: list[str] | None = Field(default=None, description="Coherence rule violations")
    requires_confirmation: bool | None = Field(
        default=None, description="Resubmitting with force_validation overrides the violations"
    )
    is_locked: bool | None = Field(default=None, description="Set when the target unit is already locked")
