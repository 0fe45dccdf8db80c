"""Participation tally coherence rules.

All rules are evaluated independently and every violation is reported, so
an operator sees the whole picture in one round trip.
"""

from dataclasses import dataclass

# |null + valid - voters| above this many ballots is reported.
BALLOT_TOLERANCE = 5
# Claimed rates may differ from the computed ones by this many points.
RATE_TOLERANCE = 1.0


@dataclass(frozen=True)
class TallyFigures:
    """Already-parsed figures of one participation tally.

    Attributes:
        registered: Registered voters.
        voters: Voters who cast a ballot.
        null_ballots: Null ballots.
        valid_suffrages: Valid expressed suffrages.
        participation_rate: Participation rate claimed by the operator.
        abstention_rate: Abstention rate claimed by the operator.
    """

    registered: int = 0
    voters: int = 0
    null_ballots: int = 0
    valid_suffrages: int = 0
    participation_rate: float = 0.0
    abstention_rate: float = 0.0


def _pct(value: float) -> str:
    return f"{value:g}%"


def validate_participation(figures: TallyFigures) -> list[str]:
    """Check the numerical coherence of a participation tally.

    Args:
        figures: The parsed tally.

    Returns:
        Human-readable error messages in rule order; empty when valid.
    """
    errors: list[str] = []
    registered = figures.registered
    voters = figures.voters
    participation = figures.participation_rate
    abstention = figures.abstention_rate

    if registered > 0 and voters > registered:
        errors.append(f"Voters ({voters}) cannot exceed registered voters ({registered})")

    ballots = figures.null_ballots + figures.valid_suffrages
    if voters > 0 and abs(ballots - voters) > BALLOT_TOLERANCE:
        errors.append(
            f"Null ballots ({figures.null_ballots}) plus valid suffrages ({figures.valid_suffrages}) "
            f"should equal the number of voters ({voters})"
        )

    if registered > 0:
        computed = voters / registered * 100
        if abs(computed - participation) > RATE_TOLERANCE:
            errors.append(
                f"Claimed participation rate ({_pct(participation)}) does not match the computed rate ({computed:.2f}%)"
            )

        computed_abstention = (registered - voters) / registered * 100
        if abs(computed_abstention - abstention) > RATE_TOLERANCE:
            errors.append(
                f"Claimed abstention rate ({_pct(abstention)}) does not match "
                f"the computed rate ({computed_abstention:.2f}%)"
            )

    if not 0 <= participation <= 100:
        errors.append("Participation rate must be between 0 and 100%")
    if not 0 <= abstention <= 100:
        errors.append("Abstention rate must be between 0 and 100%")

    if abs(participation + abstention - 100) > RATE_TOLERANCE:
        errors.append(
            f"Participation rate ({_pct(participation)}) and abstention rate ({_pct(abstention)}) should add up to 100%"
        )

    return errors


def check_participation(figures: TallyFigures, *, force_validation: bool = False) -> list[str]:
    """Run ``validate_participation`` unless the operator forced the submission.

    Args:
        figures: The parsed tally.
        force_validation: Operator override that skips every rule.

    Returns:
        Validation errors, always empty when ``force_validation`` is set.
    """
    if force_validation:
        return []
    return validate_participation(figures)


def computed_participation_rate(registered: int, voters: int) -> float | None:
    """Participation rate rounded to 2 decimals, or None without registered voters."""
    if registered <= 0:
        return None
    return round(voters / registered * 100, 2)


def computed_abstention_rate(registered: int, voters: int) -> float | None:
    """Abstention rate rounded to 2 decimals, or None without registered voters."""
    if registered <= 0:
        return None
    return round((registered - voters) / registered * 100, 2)
