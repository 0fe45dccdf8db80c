"""Security and reliability tests.

Covers bearer token edge cases and how submission and identity schemas
treat hostile input.
"""

import jwt as pyjwt
import pytest
from pydantic import ValidationError

from tally_api.core.security import create_access_token, decode_token, subject_from_token
from tally_api.schemas.identity import IdentityCreateRequest
from tally_api.schemas.participation import ParticipationPayload, ResultPayload


class TestJWTEdgeCases:
    """Extended JWT token validation edge cases."""

    SECRET = "test-secret-key-for-testing-32chars"

    def test_expired_token_rejected(self) -> None:
        token = create_access_token("scrutineer", self.SECRET, expires_minutes=-1)
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_token(token, self.SECRET)

    def test_truncated_token_missing_signature(self) -> None:
        token = create_access_token("scrutineer", self.SECRET)
        truncated = ".".join(token.split(".")[:2])
        with pytest.raises(pyjwt.DecodeError):
            decode_token(truncated, self.SECRET)
        assert subject_from_token(truncated, self.SECRET) is None

    def test_unsigned_token_rejected(self) -> None:
        token = pyjwt.encode({"sub": "admin", "type": "access"}, None, algorithm="none")
        assert subject_from_token(token, self.SECRET) is None

    def test_different_algorithm_rejected(self) -> None:
        token = create_access_token("scrutineer", self.SECRET)
        with pytest.raises(pyjwt.InvalidAlgorithmError):
            pyjwt.decode(token, self.SECRET, algorithms=["RS256"])

    def test_empty_token_string(self) -> None:
        with pytest.raises(pyjwt.DecodeError):
            decode_token("", self.SECRET)
        assert subject_from_token("", self.SECRET) is None

    def test_empty_subject_is_not_trusted(self) -> None:
        token = create_access_token("", self.SECRET)
        assert decode_token(token, self.SECRET)["sub"] == ""
        assert subject_from_token(token, self.SECRET) is None

    def test_non_string_subject_is_not_trusted(self) -> None:
        token = pyjwt.encode({"sub": 42, "type": "access"}, self.SECRET, algorithm="HS256")
        assert subject_from_token(token, self.SECRET) is None

    def test_role_claim_does_not_change_subject(self) -> None:
        token = create_access_token("observer", self.SECRET, extra_claims={"role": "administrator"})
        assert subject_from_token(token, self.SECRET) == "observer"


class TestInputValidationSecurity:
    """Tests for schema handling of malicious input."""

    SQL_INJECTION_PAYLOADS = [
        "'; DROP TABLE department_participations; --",
        "' OR '1'='1",
        "1; SELECT * FROM information_schema.tables",
    ]

    XSS_PAYLOADS = [
        '<script>alert("xss")</script>',
        '"><img src=x onerror=alert(1)>',
    ]

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS + XSS_PAYLOADS)
    def test_hostile_count_coerced_to_zero(self, payload: str) -> None:
        parsed = ParticipationPayload.model_validate({"registered_count": payload, "voter_count": payload})
        assert parsed.registered_count == 0
        assert parsed.voter_count == 0

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_hostile_vote_count_coerced_to_zero(self, payload: str) -> None:
        result = ResultPayload.model_validate({"candidate_code": 5, "vote_count": payload})
        assert result.vote_count == 0

    def test_claimed_percentage_above_100_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResultPayload.model_validate({"candidate_code": 5, "vote_count": 1, "percentage": 1000})

    @pytest.mark.parametrize("payload", SQL_INJECTION_PAYLOADS)
    def test_identity_username_accepts_sql_injection_as_literal(self, payload: str) -> None:
        """Parameterized queries protect the store; the schema keeps the literal string."""
        request = IdentityCreateRequest(username=payload, role="observer")
        assert request.username == payload

    def test_identity_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IdentityCreateRequest(username="newuser", role="superadmin")

    def test_identity_role_pattern_is_anchored(self) -> None:
        with pytest.raises(ValidationError):
            IdentityCreateRequest(username="newuser", role="observer|administrator")

    def test_identity_username_too_long_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IdentityCreateRequest(username="a" * 101, role="observer")
