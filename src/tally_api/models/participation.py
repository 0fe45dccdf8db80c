"""Participation and result records.

A participation record's existence for a unit is that unit's lock. Each
table carries a uniqueness constraint on the unit code, which is what
actually prevents two concurrent submissions for the same unit from both
succeeding. Records are write-once: nothing in the service updates or
deletes them.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    UniqueConstraint,
    false,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tally_api.models.base import Base, UUIDMixin
from tally_api.models.candidate import Candidate, Party
from tally_api.models.geography import Commune, Department

RATE_PRECISION = Numeric(5, 2)

# Optional envelope/ballot anomaly counters shared by both participation tables.
ANOMALY_FIELDS = (
    "ballot_box_envelope_count",
    "mixed_ballot_envelope_count",
    "identifiable_ballot_count",
    "marked_envelope_ballot_count",
    "unofficial_envelope_count",
    "unofficial_ballot_count",
    "ballot_without_envelope_count",
    "empty_envelope_count",
)


class ParticipationMixin:
    """Tally columns common to department and commune participation."""

    polling_station_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    registered_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    voter_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    null_ballot_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expressed_suffrage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    ballot_box_envelope_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mixed_ballot_envelope_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    identifiable_ballot_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    marked_envelope_ballot_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unofficial_envelope_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unofficial_ballot_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ballot_without_envelope_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    empty_envelope_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    participation_rate: Mapped[Decimal | None] = mapped_column(RATE_PRECISION, nullable=True)
    abstention_rate: Mapped[Decimal | None] = mapped_column(RATE_PRECISION, nullable=True)
    validation_overridden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


def _count_checks(prefix: str) -> tuple[CheckConstraint, ...]:
    return (
        CheckConstraint("registered_count >= 0", name=f"ck_{prefix}_registered"),
        CheckConstraint("voter_count >= 0", name=f"ck_{prefix}_voters"),
        CheckConstraint("null_ballot_count >= 0", name=f"ck_{prefix}_null_ballots"),
        CheckConstraint("expressed_suffrage_count >= 0", name=f"ck_{prefix}_expressed"),
        CheckConstraint("polling_station_count >= 0", name=f"ck_{prefix}_stations"),
    )


class DepartmentParticipation(Base, UUIDMixin, ParticipationMixin):
    """Certified participation tally for one department."""

    __tablename__ = "department_participations"

    department_code: Mapped[int] = mapped_column(Integer, ForeignKey("departments.code"), nullable=False)

    department: Mapped["Department"] = relationship()
    results: Mapped[list["DepartmentResult"]] = relationship(
        back_populates="participation",
        order_by=lambda: [DepartmentResult.vote_count.desc(), DepartmentResult.candidate_code],
    )

    __table_args__ = (
        UniqueConstraint("department_code", name="uq_department_participations_department_code"),
        *_count_checks("dept_participation"),
    )


class CommuneParticipation(Base, UUIDMixin, ParticipationMixin):
    """Certified participation tally for one commune."""

    __tablename__ = "commune_participations"

    commune_code: Mapped[int] = mapped_column(Integer, ForeignKey("communes.code"), nullable=False)

    commune: Mapped["Commune"] = relationship()

    __table_args__ = (
        UniqueConstraint("commune_code", name="uq_commune_participations_commune_code"),
        *_count_checks("commune_participation"),
    )


class DepartmentResult(Base, UUIDMixin):
    """Vote count for one candidate in one department.

    Only ever created in the same transaction as its participation record.
    """

    __tablename__ = "department_results"

    participation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("department_participations.id", ondelete="CASCADE"),
        nullable=False,
    )
    department_code: Mapped[int] = mapped_column(Integer, ForeignKey("departments.code"), nullable=False)
    candidate_code: Mapped[int] = mapped_column(Integer, ForeignKey("candidates.code"), nullable=False)
    party_code: Mapped[int] = mapped_column(Integer, ForeignKey("parties.code"), nullable=False)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    percentage: Mapped[Decimal] = mapped_column(RATE_PRECISION, nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    participation: Mapped["DepartmentParticipation"] = relationship(back_populates="results")
    candidate: Mapped["Candidate"] = relationship()
    party: Mapped["Party"] = relationship()

    __table_args__ = (
        UniqueConstraint("department_code", "candidate_code", name="uq_department_results_department_candidate"),
        CheckConstraint("vote_count >= 0", name="ck_department_results_votes"),
        Index("idx_department_results_department_code", "department_code"),
    )
