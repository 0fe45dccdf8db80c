"""JWT bearer credential handling.

Uses PyJWT. Tokens are issued by the external authentication service; this
module only verifies them. ``create_access_token`` mirrors that service's
token shape so local tooling and tests can mint credentials.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt


def create_access_token(
    subject: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 30,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        subject: The token subject (the identity's username).
        secret_key: Secret key for signing.
        algorithm: JWT signing algorithm.
        expires_minutes: Token expiration in minutes.
        extra_claims: Additional claims to embed (e.g. a role claim, which
            the service never trusts).

    Returns:
        The encoded JWT string.
    """
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    payload: dict[str, Any] = {
        "sub": subject,
        "exp": expire,
        "type": "access",
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> dict:
    """Decode and validate a JWT token.

    Args:
        token: The JWT string to decode.
        secret_key: Secret key used for signing.
        algorithm: JWT signing algorithm.

    Returns:
        The decoded token payload.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is invalid.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])


def subject_from_token(token: str, secret_key: str, algorithm: str = "HS256") -> str | None:
    """Return the subject of a valid token, or None if it cannot be trusted.

    Malformed, expired, wrongly signed, and subject-less tokens all yield None.

    Args:
        token: The JWT string.
        secret_key: Secret key used for signing.
        algorithm: JWT signing algorithm.
    """
    try:
        payload = decode_token(token, secret_key, algorithm)
    except jwt.InvalidTokenError:
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return subject
