from __future__ import annotations

from typing import Optional

from .credentials import CredentialStore
from .errors import InvalidTokenError, MissingTokenError
from .models import Identity
from .tokens import TokenVerifier

BEARER_PREFIX = "Bearer "


# PUBLIC_INTERFACE
class IdentityResolver:
    """
    Turn an Authorization header value into the authenticated caller.

    A missing header or one without the Bearer prefix raises MissingTokenError.
    Every later failure (signature, expiry, payload, deleted user) raises the
    same InvalidTokenError. Reads the credential store once and writes nothing.
    """

    def __init__(self, verifier: TokenVerifier, credentials: CredentialStore) -> None:
        self._verifier = verifier
        self._credentials = credentials

    def resolve(self, raw_header: Optional[str]) -> Identity:
        if not raw_header or not raw_header.startswith(BEARER_PREFIX):
            raise MissingTokenError()
        token = raw_header[len(BEARER_PREFIX):].strip()
        if not token:
            raise MissingTokenError()

        user_id = self._verifier.verify(token)
        user = self._credentials.get_user(user_id)
        if user is None:
            raise InvalidTokenError()
        return Identity.from_user(user)

