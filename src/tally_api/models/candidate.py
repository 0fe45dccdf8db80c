"""Candidate and party reference models."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tally_api.models.base import Base

candidate_parties = Table(
    "candidate_parties",
    Base.metadata,
    Column("candidate_code", Integer, ForeignKey("candidates.code", ondelete="CASCADE"), primary_key=True),
    Column("party_code", Integer, ForeignKey("parties.code", ondelete="CASCADE"), primary_key=True),
)


class Party(Base):
    """A political party."""

    __tablename__ = "parties"

    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    abbreviation: Mapped[str | None] = mapped_column(String(20), nullable=True)


class Candidate(Base):
    """A candidate, linked to zero or more parties.

    ``parties`` is ordered by party code so the primary party (the first
    entry) is deterministic.
    """

    __tablename__ = "candidates"

    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_name: Mapped[str] = mapped_column(String(200), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    parties: Mapped[list["Party"]] = relationship(
        secondary=candidate_parties,
        order_by="Party.code",
    )

    @property
    def primary_party(self) -> "Party | None":
        return self.parties[0] if self.parties else None
