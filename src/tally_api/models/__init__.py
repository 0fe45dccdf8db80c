"""ORM model registry: import all models so Alembic autogenerate discovers them."""

from tally_api.models.audit_log import AuditLog
from tally_api.models.candidate import Candidate, Party, candidate_parties
from tally_api.models.geography import Commune, Department, Region
from tally_api.models.identity import Identity, identity_departments, identity_regions
from tally_api.models.participation import CommuneParticipation, DepartmentParticipation, DepartmentResult

__all__ = [
    "AuditLog",
    "Candidate",
    "Commune",
    "CommuneParticipation",
    "Department",
    "DepartmentParticipation",
    "DepartmentResult",
    "Identity",
    "Party",
    "Region",
    "candidate_parties",
    "identity_departments",
    "identity_regions",
]
