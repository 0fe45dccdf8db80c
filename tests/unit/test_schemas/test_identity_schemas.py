"""Tests for identity management schemas."""

import pytest
from pydantic import ValidationError

from tally_api.schemas.identity import IdentityCreateRequest


class TestIdentityCreateRequest:
    """Tests for IdentityCreateRequest."""

    @pytest.mark.parametrize("role", ["administrator", "scrutineer", "observer"])
    def test_known_roles(self, role: str) -> None:
        assert IdentityCreateRequest(username="operator", role=role).role == role

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IdentityCreateRequest(username="operator", role="superuser")

    def test_short_username_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IdentityCreateRequest(username="ab", role="observer")

    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IdentityCreateRequest(username="operator", email="not-an-email", role="observer")
