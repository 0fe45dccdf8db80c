"""AuditLog model for immutable submission tracking."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, false, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from tally_api.models.base import Base, UUIDMixin


class AuditLog(Base, UUIDMixin):
    """Immutable record of submission events. Write-only (no updates or deletes)."""

    __tablename__ = "audit_logs"

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    identity_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    unit_type: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_code: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    validation_overridden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    request_metadata: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
