"""
Bearer token issuance and verification.

Tokens are HS256 JWTs carrying the user id (sub), the issue time (iat) and the
expiry (exp). They are self-contained: nothing is stored server side, so
rotating the signing key invalidates every outstanding token.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

import jwt
import structlog

from .errors import InvalidTokenError
from .settings import Settings
from .utils import utcnow

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class TokenConfig:
    """Signing key and token lifetime. Built once at startup and never mutated."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = field(default=timedelta(days=30))

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl=timedelta(days=settings.jwt_expires_days),
        )


# PUBLIC_INTERFACE
class TokenIssuer:
    """Mints signed, time-bounded bearer tokens."""

    def __init__(self, config: TokenConfig, clock: Clock = utcnow) -> None:
        self._config = config
        self._clock = clock

    def issue(self, user_id: str) -> str:
        issued_at = self._clock()
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self._config.ttl,
        }
        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)


# PUBLIC_INTERFACE
class TokenVerifier:
    """Checks signature and expiry and returns the user id a token was issued for."""

    def __init__(self, config: TokenConfig) -> None:
        self._config = config

    def verify(self, token: str) -> str:
        """
        Return the token's subject.

        Raises:
            InvalidTokenError: bad signature, expired, missing claims or unparseable payload.
        """
        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("token.rejected", reason="expired")
            raise InvalidTokenError()
        except jwt.InvalidTokenError as e:
            logger.info("token.rejected", reason=type(e).__name__)
            raise InvalidTokenError()

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            logger.info("token.rejected", reason="bad_subject")
            raise InvalidTokenError()
        return subject
