"""Consistency library public API.

Provides the participation coherence rules and the numeric coercion used
at the submission boundary.
"""

from tally_api.lib.consistency.parsing import (
    coerce_float,
    coerce_int,
    coerce_optional_float,
    coerce_optional_int,
)
from tally_api.lib.consistency.validator import (
    BALLOT_TOLERANCE,
    RATE_TOLERANCE,
    TallyFigures,
    check_participation,
    computed_abstention_rate,
    computed_participation_rate,
    validate_participation,
)

__all__ = [
    "BALLOT_TOLERANCE",
    "RATE_TOLERANCE",
    "TallyFigures",
    "check_participation",
    "coerce_float",
    "coerce_int",
    "coerce_optional_float",
    "coerce_optional_int",
    "computed_abstention_rate",
    "computed_participation_rate",
    "validate_participation",
]
