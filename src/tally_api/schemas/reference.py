"""Pydantic v2 schemas for reference data: geography, parties, candidates."""

from pydantic import BaseModel, ConfigDict, Field


class PartyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: int
    label: str
    abbreviation: str | None = None


class CandidateResponse(BaseModel):
    """Candidate with linked parties, primary party first."""

    model_config = ConfigDict(from_attributes=True)

    code: int
    last_name: str
    first_name: str | None = None
    parties: list[PartyResponse] = Field(default_factory=list)


class RegionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: int
    label: str
    abbreviation: str | None = None


class DepartmentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: int
    label: str
    abbreviation: str | None = None
    chief_town: str | None = None
    region_code: int


class CommuneSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: int
    label: str
    description: str | None = None


class RegionResponse(RegionSummary):
    """Region with its departments."""

    chief_town: str | None = None
    departments: list[DepartmentSummary] = Field(default_factory=list)


class DepartmentListItem(DepartmentSummary):
    """Department entry of the scoped listing."""

    region: RegionSummary
    communes: list[CommuneSummary] = Field(default_factory=list)
    is_locked: bool
    has_results: bool


class DepartmentListResponse(BaseModel):
    """Departments visible to the caller."""

    count: int
    items: list[DepartmentListItem]
    message: str | None = None


# --- Reference data file ---


class ReferenceRegion(BaseModel):
    code: int = Field(gt=0)
    label: str = Field(min_length=1, max_length=200)
    abbreviation: str | None = None
    chief_town: str | None = None


class ReferenceDepartment(ReferenceRegion):
    region_code: int = Field(gt=0)


class ReferenceCommune(BaseModel):
    code: int = Field(gt=0)
    label: str = Field(min_length=1, max_length=200)
    description: str | None = None
    department_code: int = Field(gt=0)


class ReferenceParty(BaseModel):
    code: int = Field(gt=0)
    label: str = Field(min_length=1, max_length=200)
    abbreviation: str | None = None


class ReferenceCandidate(BaseModel):
    code: int = Field(gt=0)
    last_name: str = Field(min_length=1, max_length=200)
    first_name: str | None = None
    party_codes: list[int] = Field(default_factory=list)


class ReferenceDataFile(BaseModel):
    """Reference data bundle loaded by ``tally-api reference load``."""

    regions: list[ReferenceRegion] = Field(default_factory=list)
    departments: list[ReferenceDepartment] = Field(default_factory=list)
    communes: list[ReferenceCommune] = Field(default_factory=list)
    parties: list[ReferenceParty] = Field(default_factory=list)
    candidates: list[ReferenceCandidate] = Field(default_factory=list)
