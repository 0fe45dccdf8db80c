"""Submission service: validated, atomic, write-once submissions.

Orchestrates the path of a submission once the caller's identity is known:
scope authorization, the lock fast path, coherence rules (unless the
operator forces them off), then a single transaction that re-checks the
lock under a row lock on the unit, resolves missing party affiliations,
and persists the participation record, its result records, and an audit
record together. Any failure rolls the whole transaction back.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tally_api.core.errors import (
    AlreadyLockedError,
    ConsistencyViolationError,
    InvalidPayloadError,
    NotFoundError,
    PersistenceError,
    TallyError,
)
from tally_api.lib.consistency import (
    TallyFigures,
    check_participation,
    computed_abstention_rate,
    computed_participation_rate,
    validate_participation,
)
from tally_api.models.candidate import Candidate, Party
from tally_api.models.geography import Commune, Department
from tally_api.models.identity import Identity
from tally_api.models.participation import CommuneParticipation, DepartmentParticipation, DepartmentResult
from tally_api.schemas.participation import (
    CommuneParticipationRequest,
    DepartmentSubmissionRequest,
    ParticipationCheckRequest,
    ParticipationPayload,
    ResultPayload,
)
from tally_api.services import audit_service
from tally_api.services.lock_service import UnitType, assert_unlocked, is_locked
from tally_api.services.recap_service import list_department_results
from tally_api.services.scope_service import AccessScope, authorize_department

# Party recorded when a result's candidate has no linked party.
DEFAULT_PARTY_CODE = 1
DEFAULT_PARTY_LABEL = "Unaffiliated"

# Rates and percentages are stored as NUMERIC(5, 2).
MAX_STORED_RATE = Decimal("999.99")


@dataclass
class DepartmentSubmission:
    """Records created by an accepted department submission."""

    participation: DepartmentParticipation
    results: list[DepartmentResult]


def _to_decimal(value: float | None, field: str) -> Decimal | None:
    """Round to the stored precision, rejecting values the column cannot hold.

    Raises:
        InvalidPayloadError: If the rounded value exceeds ``MAX_STORED_RATE`` in magnitude.
    """
    if value is None:
        return None
    stored = Decimal(str(round(value, 2)))
    if abs(stored) > MAX_STORED_RATE:
        msg = f"{field} {stored:.2f} cannot be stored (limit {MAX_STORED_RATE})"
        raise InvalidPayloadError(msg)
    return stored


def expressed_suffrage(payload: ParticipationPayload) -> int:
    """Explicit expressed suffrage, else voters minus null ballots, floored at 0."""
    if payload.expressed_suffrage_count is not None:
        return payload.expressed_suffrage_count
    return max(payload.voter_count - payload.null_ballot_count, 0)


def result_percentage(result: ResultPayload, expressed: int) -> float:
    """Claimed percentage, else the share of expressed suffrage (2 decimals)."""
    if result.percentage is not None:
        return result.percentage
    if expressed <= 0:
        return 0.0
    return round(result.vote_count / expressed * 100, 2)


def department_figures(payload: ParticipationPayload) -> TallyFigures:
    """Figures for the coherence rules of a department tally.

    Department forms do not always carry the rates; a rate that was not
    claimed is taken as the computed one so that only claimed rates are
    checked.
    """
    registered = payload.registered_count
    voters = payload.voter_count
    participation = payload.participation_rate
    if participation is None:
        participation = computed_participation_rate(registered, voters) or 0.0
    abstention = payload.abstention_rate
    if abstention is None:
        abstention = computed_abstention_rate(registered, voters)
        if abstention is None:
            abstention = 100.0 - participation
    return TallyFigures(
        registered=registered,
        voters=voters,
        null_ballots=payload.null_ballot_count,
        valid_suffrages=expressed_suffrage(payload),
        participation_rate=participation,
        abstention_rate=abstention,
    )


def check_request(request: ParticipationCheckRequest) -> list[str]:
    """Dry-run the coherence rules for a tally, honouring the override flag."""
    return check_participation(request.to_figures(), force_validation=request.force_validation)


def _apply_rules(figures: TallyFigures, *, force_validation: bool, unit: str) -> list[str]:
    """Run the coherence rules; return the violations an override bypassed.

    Raises:
        ConsistencyViolationError: If rules fail and the override is not set.
    """
    errors = check_participation(figures, force_validation=force_validation)
    if errors:
        raise ConsistencyViolationError(errors)
    if not force_validation:
        return []
    bypassed = validate_participation(figures)
    if bypassed:
        logger.warning(f"Validation overridden for {unit}: {len(bypassed)} rule violation(s) bypassed")
    return bypassed


async def _lock_row(session: AsyncSession, model: type[Department] | type[Commune], code: int):  # type: ignore[no-untyped-def]
    """Load a unit's reference row with FOR UPDATE (a no-op on SQLite)."""
    result = await session.execute(select(model).where(model.code == code).with_for_update())
    return result.scalar_one_or_none()


async def _load_candidates(session: AsyncSession, codes: list[int]) -> dict[int, Candidate]:
    result = await session.execute(
        select(Candidate).options(selectinload(Candidate.parties)).where(Candidate.code.in_(codes))
    )
    return {candidate.code: candidate for candidate in result.scalars().all()}


async def _assert_parties_exist(session: AsyncSession, codes: set[int]) -> None:
    """Fail on explicit party codes that are not in the reference data.

    Raises:
        NotFoundError: If any code is unknown.
    """
    if not codes:
        return
    result = await session.execute(select(Party.code).where(Party.code.in_(codes)))
    missing = sorted(codes - set(result.scalars().all()))
    if missing:
        msg = f"Unknown party code(s): {', '.join(str(c) for c in missing)}"
        raise NotFoundError(msg)


async def _ensure_default_party(session: AsyncSession, code: int) -> None:
    """Create the default party row if the reference data does not carry it."""
    if await session.get(Party, code) is not None:
        return
    logger.warning(f"Default party {code} missing from reference data, creating it as {DEFAULT_PARTY_LABEL!r}")
    session.add(Party(code=code, label=DEFAULT_PARTY_LABEL))
    await session.flush()


def resolve_party_code(result: ResultPayload, candidate: Candidate | None, default_party_code: int) -> int:
    """Party code for a result: explicit, else the candidate's primary party, else the default."""
    if result.party_code is not None:
        return result.party_code
    if candidate is not None and candidate.primary_party is not None:
        return candidate.primary_party.code
    return default_party_code


async def _rollback_and_translate(
    session: AsyncSession,
    exc: Exception,
    unit_type: UnitType,
    unit_code: int,
) -> TallyError:
    """Roll back and map a store failure to the error the caller should see."""
    await session.rollback()
    if isinstance(exc, IntegrityError) and await is_locked(session, unit_type, unit_code):
        logger.info(f"Concurrent submission for {unit_type} {unit_code} lost the race")
        return AlreadyLockedError(unit_type.value, unit_code)
    logger.exception(f"Failed to persist submission for {unit_type} {unit_code}")
    return PersistenceError()


async def submit_department_results(
    session: AsyncSession,
    department_code: int,
    request: DepartmentSubmissionRequest,
    *,
    identity: Identity,
    scope: AccessScope,
    default_party_code: int = DEFAULT_PARTY_CODE,
) -> DepartmentSubmission:
    """Atomically record a department's participation and per-candidate results.

    Args:
        session: Async database session.
        department_code: The department submitted for.
        request: Participation figures, results, and the override flag.
        identity: The submitting identity.
        scope: The identity's resolved access scope.
        default_party_code: Party recorded for results with no resolvable party.

    Returns:
        The created participation record and its results (ordered by votes).

    Raises:
        ForbiddenError: If the department is outside ``scope``.
        NotFoundError: If the department, a referenced candidate, or an explicit party does not exist.
        AlreadyLockedError: If the department already holds a participation record.
        InvalidPayloadError: If required figures are missing, results are duplicated,
            or a rate or percentage is too large to store.
        ConsistencyViolationError: If coherence rules fail without the override.
        PersistenceError: If the store fails; nothing was committed.
    """
    authorize_department(scope, department_code)
    participation_payload = request.participation

    if await session.get(Department, department_code) is None:
        msg = f"Department {department_code} not found"
        raise NotFoundError(msg)
    await assert_unlocked(session, UnitType.DEPARTMENT, department_code)

    if participation_payload.has_participation_data and participation_payload.registered_count <= 0:
        msg = "Registered voters must be greater than 0 when participation figures are reported"
        raise InvalidPayloadError(msg)
    candidate_codes = [r.candidate_code for r in request.results]
    if len(set(candidate_codes)) != len(candidate_codes):
        msg = "Each candidate may appear only once in the results"
        raise InvalidPayloadError(msg)

    bypassed = _apply_rules(
        department_figures(participation_payload),
        force_validation=request.force_validation,
        unit=f"department {department_code}",
    )

    expressed = expressed_suffrage(participation_payload)
    registered = participation_payload.registered_count
    voters = participation_payload.voter_count
    participation_rate = _to_decimal(computed_participation_rate(registered, voters), "Participation rate")
    abstention_rate = _to_decimal(computed_abstention_rate(registered, voters), "Abstention rate")
    percentages = [
        _to_decimal(result_percentage(result, expressed), f"Percentage for candidate {result.candidate_code}")
        for result in request.results
    ]

    now = datetime.now(UTC)
    try:
        # Re-check under the unit row lock, inside the submission transaction.
        await _lock_row(session, Department, department_code)
        await assert_unlocked(session, UnitType.DEPARTMENT, department_code)

        candidates = await _load_candidates(session, candidate_codes)
        missing = sorted(set(candidate_codes) - candidates.keys())
        if missing:
            msg = f"Unknown candidate code(s): {', '.join(str(c) for c in missing)}"
            raise NotFoundError(msg)
        await _assert_parties_exist(session, {r.party_code for r in request.results if r.party_code is not None})

        party_codes = [
            resolve_party_code(result, candidates[result.candidate_code], default_party_code)
            for result in request.results
        ]
        unaffiliated = [
            result.candidate_code
            for result, party_code in zip(request.results, party_codes, strict=True)
            if result.party_code is None and party_code == default_party_code
        ]
        if unaffiliated:
            logger.info(
                f"Candidate(s) {', '.join(str(c) for c in unaffiliated)} have no linked party, "
                f"recording default party {default_party_code}"
            )
            await _ensure_default_party(session, default_party_code)

        participation = DepartmentParticipation(
            department_code=department_code,
            polling_station_count=participation_payload.polling_station_count,
            registered_count=registered,
            voter_count=voters,
            null_ballot_count=participation_payload.null_ballot_count,
            expressed_suffrage_count=expressed,
            participation_rate=participation_rate,
            abstention_rate=abstention_rate,
            validation_overridden=request.force_validation,
            created_at=now,
            **participation_payload.anomaly_counts(),
        )
        session.add(participation)
        await session.flush()

        for result, party_code, percentage in zip(request.results, party_codes, percentages, strict=True):
            session.add(
                DepartmentResult(
                    participation_id=participation.id,
                    department_code=department_code,
                    candidate_code=result.candidate_code,
                    party_code=party_code,
                    vote_count=result.vote_count,
                    percentage=percentage,
                    created_at=now,
                )
            )

        audit_service.record_submission(
            session,
            identity=identity,
            action="submit_department_results",
            unit_type=UnitType.DEPARTMENT.value,
            unit_code=department_code,
            validation_overridden=request.force_validation,
            request_metadata={"result_count": len(request.results), "bypassed_errors": bypassed},
        )
        await session.flush()
        await session.commit()
    except TallyError:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        raise await _rollback_and_translate(session, exc, UnitType.DEPARTMENT, department_code) from exc

    logger.info(
        f"Department {department_code} submitted by {identity.username}: "
        f"{len(request.results)} result(s), forced={request.force_validation}"
    )
    results = await list_department_results(session, department_code)
    return DepartmentSubmission(participation=participation, results=results)


async def submit_commune_participation(
    session: AsyncSession,
    commune_code: int,
    request: CommuneParticipationRequest,
    *,
    identity: Identity,
    scope: AccessScope,
) -> CommuneParticipation:
    """Atomically record a commune's participation tally.

    Claimed rates are stored as submitted; a rate that was not claimed is
    computed from the counts.

    Args:
        session: Async database session.
        commune_code: The commune submitted for.
        request: Participation figures and the override flag.
        identity: The submitting identity.
        scope: The identity's resolved access scope.

    Returns:
        The created participation record.

    Raises:
        NotFoundError: If the commune does not exist.
        ForbiddenError: If the commune's department is outside ``scope``.
        AlreadyLockedError: If the commune already holds a participation record.
        InvalidPayloadError: If a rate is too large to store.
        ConsistencyViolationError: If coherence rules fail without the override.
        PersistenceError: If the store fails; nothing was committed.
    """
    commune = await session.get(Commune, commune_code)
    if commune is None:
        msg = f"Commune {commune_code} not found"
        raise NotFoundError(msg)
    authorize_department(scope, commune.department_code)
    await assert_unlocked(session, UnitType.COMMUNE, commune_code)

    bypassed = _apply_rules(
        request.to_figures(),
        force_validation=request.force_validation,
        unit=f"commune {commune_code}",
    )

    registered = request.registered_count
    voters = request.voter_count
    participation_rate = request.participation_rate
    if participation_rate is None:
        participation_rate = computed_participation_rate(registered, voters)
    abstention_rate = request.abstention_rate
    if abstention_rate is None:
        abstention_rate = computed_abstention_rate(registered, voters)
    stored_participation_rate = _to_decimal(participation_rate, "Participation rate")
    stored_abstention_rate = _to_decimal(abstention_rate, "Abstention rate")

    try:
        await _lock_row(session, Commune, commune_code)
        await assert_unlocked(session, UnitType.COMMUNE, commune_code)

        participation = CommuneParticipation(
            commune_code=commune_code,
            polling_station_count=request.polling_station_count,
            registered_count=registered,
            voter_count=voters,
            null_ballot_count=request.null_ballot_count,
            expressed_suffrage_count=expressed_suffrage(request),
            participation_rate=stored_participation_rate,
            abstention_rate=stored_abstention_rate,
            validation_overridden=request.force_validation,
            created_at=datetime.now(UTC),
            **request.anomaly_counts(),
        )
        session.add(participation)
        audit_service.record_submission(
            session,
            identity=identity,
            action="submit_commune_participation",
            unit_type=UnitType.COMMUNE.value,
            unit_code=commune_code,
            validation_overridden=request.force_validation,
            request_metadata={"department_code": commune.department_code, "bypassed_errors": bypassed},
        )
        await session.flush()
        await session.commit()
    except TallyError:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        raise await _rollback_and_translate(session, exc, UnitType.COMMUNE, commune_code) from exc

    logger.info(
        f"Commune {commune_code} participation submitted by {identity.username}, forced={request.force_validation}"
    )
    return participation
