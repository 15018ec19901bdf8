"""Access token verification.

Tokens are issued by the external identity provider. This service never
issues sessions for end users; it only verifies the bearer token and reads
the subject id from it. ``create_access_token`` exists for local tooling and
the test suite.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from fxleague.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Token validation error with specific code."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


def create_access_token(
    user_id: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token for ``user_id``.

    Args:
        user_id: Profile id to place in the ``sub`` claim
        additional_claims: Extra claims (``email``, ``aud``...)
        expires_delta: Lifetime, defaults to one hour

    Returns:
        Encoded JWT string
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=1)

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "iat": now,
        "exp": now + expires_delta,
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> dict[str, Any] | None:
    """Verify an access token and return its payload.

    Args:
        token: JWT access token

    Returns:
        Token payload if valid, None otherwise

    Raises:
        TokenError: If the token has expired
    """
    if not token:
        logger.debug("Access token verification failed: empty token")
        return None

    options: dict[str, Any] = {"require_exp": True, "require_sub": True}
    if not settings.jwt_audience:
        options["verify_aud"] = False

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Access token verification failed: token expired")
        raise TokenError("TOKEN_EXPIRED", "Token has expired")
    except jwt.JWTClaimsError as e:
        logger.debug(f"Access token verification failed: invalid claims - {e}")
        return None
    except JWTError as e:
        logger.warning(f"Access token verification failed: {type(e).__name__}")
        return None

    if not payload.get("sub"):
        logger.debug("Access token verification failed: missing sub claim")
        return None

    return payload
