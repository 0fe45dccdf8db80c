"""Pydantic v2 schemas for the department recap view."""

from pydantic import BaseModel, Field

from tally_api.schemas.participation import CommuneParticipationResponse, DepartmentParticipationResponse, ResultResponse
from tally_api.schemas.reference import CommuneSummary, RegionSummary


class RecapDepartment(BaseModel):
    """Department metadata with its child communes."""

    code: int
    label: str | None = None
    region: RegionSummary | None = None
    communes: list[CommuneSummary] = Field(default_factory=list)


class CommuneRecapEntry(BaseModel):
    """Participation detail of one commune that has submitted."""

    code: int
    label: str | None = None
    participation: CommuneParticipationResponse


class RecapStats(BaseModel):
    """Completeness of commune submissions within the department."""

    total_communes: int
    communes_with_data: int
    completion_percentage: float = Field(description="communes_with_data / total_communes × 100, 1 decimal")


class RecapResponse(BaseModel):
    """Composed, read-only view of a department."""

    department: RecapDepartment
    participation: DepartmentParticipationResponse | None = None
    results: list[ResultResponse] = Field(default_factory=list)
    communes_data: dict[int, CommuneRecapEntry] = Field(default_factory=dict)
    stats: RecapStats
    is_locked: bool
