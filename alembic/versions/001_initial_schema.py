"""Initial schema: reference data, identities, participation, results, audit logs.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _participation_columns() -> list[sa.Column]:
    return [
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("polling_station_count", sa.Integer, nullable=False),
        sa.Column("registered_count", sa.Integer, nullable=False),
        sa.Column("voter_count", sa.Integer, nullable=False),
        sa.Column("null_ballot_count", sa.Integer, nullable=False),
        sa.Column("expressed_suffrage_count", sa.Integer, nullable=False),
        sa.Column("ballot_box_envelope_count", sa.Integer, nullable=True),
        sa.Column("mixed_ballot_envelope_count", sa.Integer, nullable=True),
        sa.Column("identifiable_ballot_count", sa.Integer, nullable=True),
        sa.Column("marked_envelope_ballot_count", sa.Integer, nullable=True),
        sa.Column("unofficial_envelope_count", sa.Integer, nullable=True),
        sa.Column("unofficial_ballot_count", sa.Integer, nullable=True),
        sa.Column("ballot_without_envelope_count", sa.Integer, nullable=True),
        sa.Column("empty_envelope_count", sa.Integer, nullable=True),
        sa.Column("participation_rate", sa.Numeric(5, 2), nullable=True),
        sa.Column("abstention_rate", sa.Numeric(5, 2), nullable=True),
        sa.Column("validation_overridden", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _count_checks(prefix: str) -> list[sa.CheckConstraint]:
    return [
        sa.CheckConstraint("registered_count >= 0", name=f"ck_{prefix}_registered"),
        sa.CheckConstraint("voter_count >= 0", name=f"ck_{prefix}_voters"),
        sa.CheckConstraint("null_ballot_count >= 0", name=f"ck_{prefix}_null_ballots"),
        sa.CheckConstraint("expressed_suffrage_count >= 0", name=f"ck_{prefix}_expressed"),
        sa.CheckConstraint("polling_station_count >= 0", name=f"ck_{prefix}_stations"),
    ]


def upgrade() -> None:
    # Reference data
    op.create_table(
        "regions",
        sa.Column("code", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("abbreviation", sa.String(20), nullable=True),
        sa.Column("chief_town", sa.String(200), nullable=True),
    )
    op.create_table(
        "departments",
        sa.Column("code", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("abbreviation", sa.String(20), nullable=True),
        sa.Column("chief_town", sa.String(200), nullable=True),
        sa.Column("region_code", sa.Integer, sa.ForeignKey("regions.code"), nullable=False),
    )
    op.create_index("idx_departments_region_code", "departments", ["region_code"])
    op.create_table(
        "communes",
        sa.Column("code", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("department_code", sa.Integer, sa.ForeignKey("departments.code"), nullable=False),
    )
    op.create_index("idx_communes_department_code", "communes", ["department_code"])
    op.create_table(
        "parties",
        sa.Column("code", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("abbreviation", sa.String(20), nullable=True),
    )
    op.create_table(
        "candidates",
        sa.Column("code", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("last_name", sa.String(200), nullable=False),
        sa.Column("first_name", sa.String(200), nullable=True),
    )
    op.create_table(
        "candidate_parties",
        sa.Column(
            "candidate_code", sa.Integer, sa.ForeignKey("candidates.code", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column("party_code", sa.Integer, sa.ForeignKey("parties.code", ondelete="CASCADE"), primary_key=True),
    )

    # Identities and their assignments
    op.create_table(
        "identities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("role IN ('administrator', 'scrutineer', 'observer')", name="ck_identity_role"),
    )
    op.create_index("ix_identities_username", "identities", ["username"], unique=True)
    op.create_table(
        "identity_departments",
        sa.Column(
            "identity_id", UUID(as_uuid=True), sa.ForeignKey("identities.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column(
            "department_code", sa.Integer, sa.ForeignKey("departments.code", ondelete="CASCADE"), primary_key=True
        ),
    )
    op.create_table(
        "identity_regions",
        sa.Column(
            "identity_id", UUID(as_uuid=True), sa.ForeignKey("identities.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column("region_code", sa.Integer, sa.ForeignKey("regions.code", ondelete="CASCADE"), primary_key=True),
    )

    # Participation and results; one participation record per unit is the lock
    op.create_table(
        "department_participations",
        *_participation_columns(),
        sa.Column("department_code", sa.Integer, sa.ForeignKey("departments.code"), nullable=False),
        sa.UniqueConstraint("department_code", name="uq_department_participations_department_code"),
        *_count_checks("dept_participation"),
    )
    op.create_table(
        "commune_participations",
        *_participation_columns(),
        sa.Column("commune_code", sa.Integer, sa.ForeignKey("communes.code"), nullable=False),
        sa.UniqueConstraint("commune_code", name="uq_commune_participations_commune_code"),
        *_count_checks("commune_participation"),
    )
    op.create_table(
        "department_results",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "participation_id",
            UUID(as_uuid=True),
            sa.ForeignKey("department_participations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("department_code", sa.Integer, sa.ForeignKey("departments.code"), nullable=False),
        sa.Column("candidate_code", sa.Integer, sa.ForeignKey("candidates.code"), nullable=False),
        sa.Column("party_code", sa.Integer, sa.ForeignKey("parties.code"), nullable=False),
        sa.Column("vote_count", sa.Integer, nullable=False),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("department_code", "candidate_code", name="uq_department_results_department_candidate"),
        sa.CheckConstraint("vote_count >= 0", name="ck_department_results_votes"),
    )
    op.create_index("idx_department_results_department_code", "department_results", ["department_code"])

    # Audit trail
    op.create_table(
        "audit_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("identity_id", UUID(as_uuid=True), nullable=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("unit_type", sa.String(20), nullable=False),
        sa.Column("unit_code", sa.Integer, nullable=False),
        sa.Column("validation_overridden", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("request_metadata", sa.JSON().with_variant(JSONB(), "postgresql"), nullable=True),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
    op.create_index("ix_audit_logs_identity_id", "audit_logs", ["identity_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_unit_code", "audit_logs", ["unit_code"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("department_results")
    op.drop_table("commune_participations")
    op.drop_table("department_participations")
    op.drop_table("identity_regions")
    op.drop_table("identity_departments")
    op.drop_table("identities")
    op.drop_table("candidate_parties")
    op.drop_table("candidates")
    op.drop_table("parties")
    op.drop_table("communes")
    op.drop_table("departments")
    op.drop_table("regions")
