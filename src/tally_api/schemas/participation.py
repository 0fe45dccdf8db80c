"""Pydantic v2 schemas for participation and result submissions.

Request models accept the snake_case field names as well as the legacy
form field names still sent by older operator clients (``nombreInscrits``,
``codeCandidat``, ...). Numbers are coerced with the consistency library
before validation: missing or malformed values become 0, negative counts
are rejected.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from tally_api.lib.consistency import (
    TallyFigures,
    coerce_int,
    coerce_optional_float,
    coerce_optional_int,
)
from tally_api.schemas.reference import PartyResponse


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


_COUNT_FIELDS = (
    "polling_station_count",
    "registered_count",
    "voter_count",
    "null_ballot_count",
)
_OPTIONAL_COUNT_FIELDS = (
    "expressed_suffrage_count",
    "ballot_box_envelope_count",
    "mixed_ballot_envelope_count",
    "identifiable_ballot_count",
    "marked_envelope_ballot_count",
    "unofficial_envelope_count",
    "unofficial_ballot_count",
    "ballot_without_envelope_count",
    "empty_envelope_count",
)
_RATE_FIELDS = ("participation_rate", "abstention_rate")


# --- Request schemas ---


class ParticipationPayload(BaseModel):
    """Participation tally figures for one unit."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    polling_station_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("polling_station_count", "nombreBureauVote", "nombreBureaux", "nombre_bureau_vote"),
    )
    registered_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("registered_count", "nombreInscrit", "nombreInscrits", "nombre_inscrit"),
    )
    voter_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("voter_count", "nombreVotant", "nombreVotants", "nombre_votant"),
    )
    null_ballot_count: int = Field(
        default=0,
        ge=0,
        validation_alias=_aliases("null_ballot_count", "bulletinNul", "bulletinsNuls", "bulletin_nul"),
    )
    expressed_suffrage_count: int | None = Field(
        default=None,
        ge=0,
        description="Valid expressed suffrages; derived from voters minus null ballots when absent",
        validation_alias=_aliases(
            "expressed_suffrage_count", "suffrageExprime", "suffragesValables", "suffrage_exprime"
        ),
    )
    participation_rate: float | None = Field(
        default=None,
        validation_alias=_aliases("participation_rate", "tauxParticipation", "taux_participation"),
    )
    abstention_rate: float | None = Field(
        default=None,
        validation_alias=_aliases("abstention_rate", "tauxAbstention", "taux_abstention"),
    )

    ballot_box_envelope_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases("ballot_box_envelope_count", "nombreEnveloppeUrnes", "nombre_enveloppe_urnes"),
    )
    mixed_ballot_envelope_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases(
            "mixed_ballot_envelope_count",
            "enveloppesContBulletinsDifferents",
            "nombre_enveloppe_bulletins_differents",
        ),
    )
    identifiable_ballot_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases(
            "identifiable_ballot_count", "bulletinsAvecSignes", "nombre_bulletin_electeur_identifiable"
        ),
    )
    marked_envelope_ballot_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases(
            "marked_envelope_ballot_count",
            "bulletinsDansEnveloppesAvecSignes",
            "nombre_bulletin_enveloppes_signes",
        ),
    )
    unofficial_envelope_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases(
            "unofficial_envelope_count", "enveloppesAutresQueElecam", "nombre_enveloppe_non_elecam"
        ),
    )
    unofficial_ballot_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases("unofficial_ballot_count", "bulletinsAutresQueElecam", "nombre_bulletin_non_elecam"),
    )
    ballot_without_envelope_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases(
            "ballot_without_envelope_count", "bulletinsSansEnveloppes", "nombre_bulletin_sans_enveloppe"
        ),
    )
    empty_envelope_count: int | None = Field(
        default=None,
        ge=0,
        validation_alias=_aliases("empty_envelope_count", "enveloppesVides", "nombre_enveloppe_vide"),
    )

    @field_validator(*_COUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_count(cls, v: Any) -> int:
        return coerce_int(v)

    @field_validator(*_OPTIONAL_COUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_optional_count(cls, v: Any) -> int | None:
        return coerce_optional_int(v)

    @field_validator(*_RATE_FIELDS, mode="before")
    @classmethod
    def _coerce_rate(cls, v: Any) -> float | None:
        return coerce_optional_float(v)

    @property
    def has_participation_data(self) -> bool:
        """Whether any headline participation figure was reported."""
        return self.registered_count > 0 or self.voter_count > 0 or self.polling_station_count > 0

    def to_figures(self) -> TallyFigures:
        """Figures for the coherence rules, absent values counted as 0."""
        return TallyFigures(
            registered=self.registered_count,
            voters=self.voter_count,
            null_ballots=self.null_ballot_count,
            valid_suffrages=self.expressed_suffrage_count or 0,
            participation_rate=self.participation_rate or 0.0,
            abstention_rate=self.abstention_rate or 0.0,
        )

    def anomaly_counts(self) -> dict[str, int | None]:
        """The optional envelope/ballot anomaly counters keyed by column name."""
        return {name: getattr(self, name) for name in _OPTIONAL_COUNT_FIELDS if name != "expressed_suffrage_count"}


class ParticipationCheckRequest(ParticipationPayload):
    """Dry-run coherence check of a tally."""

    force_validation: bool = Field(
        default=False,
        validation_alias=_aliases("force_validation", "forceValidation"),
    )


class CommuneParticipationRequest(ParticipationCheckRequest):
    """Participation submission for one commune."""


class ResultPayload(BaseModel):
    """Vote count for one candidate."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    candidate_code: int = Field(gt=0, validation_alias=_aliases("candidate_code", "codeCandidat"))
    party_code: int | None = Field(
        default=None,
        gt=0,
        description="Resolved from the candidate's first linked party when absent",
        validation_alias=_aliases("party_code", "codeParti"),
    )
    vote_count: int = Field(default=0, ge=0, validation_alias=_aliases("vote_count", "nombreVote"))
    percentage: float | None = Field(
        default=None,
        ge=0,
        le=100,
        validation_alias=_aliases("percentage", "pourcentage"),
    )

    @field_validator("party_code", mode="before")
    @classmethod
    def _coerce_party_code(cls, v: Any) -> int | None:
        code = coerce_optional_int(v)
        return code or None

    @field_validator("vote_count", mode="before")
    @classmethod
    def _coerce_vote_count(cls, v: Any) -> int:
        return coerce_int(v)

    @field_validator("percentage", mode="before")
    @classmethod
    def _coerce_percentage(cls, v: Any) -> float | None:
        return coerce_optional_float(v)


class DepartmentSubmissionRequest(BaseModel):
    """Department participation plus its per-candidate results."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    participation: ParticipationPayload
    results: list[ResultPayload] = Field(validation_alias=_aliases("results", "resultats"))
    force_validation: bool = Field(
        default=False,
        validation_alias=_aliases("force_validation", "forceValidation"),
    )


# --- Response schemas ---


class ParticipationResponse(BaseModel):
    """Stored participation record."""

    model_config = ConfigDict(from_attributes=True)

    polling_station_count: int
    registered_count: int
    voter_count: int
    null_ballot_count: int
    expressed_suffrage_count: int
    ballot_box_envelope_count: int | None = None
    mixed_ballot_envelope_count: int | None = None
    identifiable_ballot_count: int | None = None
    marked_envelope_ballot_count: int | None = None
    unofficial_envelope_count: int | None = None
    unofficial_ballot_count: int | None = None
    ballot_without_envelope_count: int | None = None
    empty_envelope_count: int | None = None
    participation_rate: float | None = None
    abstention_rate: float | None = None
    validation_overridden: bool = False
    created_at: datetime | None = None


class DepartmentParticipationResponse(ParticipationResponse):
    department_code: int


class CommuneParticipationResponse(ParticipationResponse):
    commune_code: int


class ResultResponse(BaseModel):
    """Stored result record."""

    model_config = ConfigDict(from_attributes=True)

    department_code: int
    candidate_code: int
    party_code: int
    vote_count: int
    percentage: float
    party: PartyResponse | None = None


class DepartmentSubmissionResponse(BaseModel):
    """Outcome of an accepted department submission."""

    message: str = "Results submitted successfully"
    participation: DepartmentParticipationResponse
    results: list[ResultResponse]


class CommuneSubmissionResponse(BaseModel):
    """Outcome of an accepted commune submission."""

    message: str = "Commune participation saved successfully"
    participation: CommuneParticipationResponse


class ParticipationCheckResponse(BaseModel):
    """Outcome of a dry-run coherence check."""

    valid: bool
    forced: bool = False
    errors: list[str] = Field(default_factory=list)


class DepartmentStatusResponse(BaseModel):
    """Lock status of a department with whatever it holds."""

    department_code: int
    is_locked: bool
    participation: DepartmentParticipationResponse | None = None
    results: list[ResultResponse] = Field(default_factory=list)


class CommuneStatusResponse(BaseModel):
    """Lock status of a commune with its participation record, if any."""

    commune_code: int
    is_locked: bool
    participation: CommuneParticipationResponse | None = None
