"""
Credential store: user registration and email/password verification.

Password digests stay inside this module. Everything it returns is the public
projection of a user (id, name, email, created_at).
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import structlog

from .errors import DuplicateEmailError, InvalidCredentialsError, ValidationError
from .models import UserEntity
from .passwords import DEFAULT_ROUNDS, hash_password, verify_password
from .repositories import UserRepository
from .utils import clean_text, is_valid_email, new_id, normalize_email, utcnow

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


def public_user(user: UserEntity) -> Dict[str, Any]:
    return {
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "created_at": user["created_at"],
    }


# PUBLIC_INTERFACE
class CredentialStore:
    """Registers users and verifies their credentials against a UserRepository."""

    def __init__(self, users: UserRepository, bcrypt_rounds: int = DEFAULT_ROUNDS) -> None:
        self._users = users
        self._rounds = bcrypt_rounds
        # Unknown emails are checked against this digest so every failed login costs one bcrypt check.
        self._decoy_hash = hash_password(new_id(), rounds=bcrypt_rounds)

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        Create a user and return its public projection.

        Raises:
            ValidationError: a field is missing or blank, the email is malformed, or the
                password is shorter than MIN_PASSWORD_LENGTH.
            DuplicateEmailError: the normalized email is already registered.
        """
        clean_name = clean_text(name)
        clean_email = clean_text(email)
        if clean_name is None or clean_email is None or not password:
            raise ValidationError("Please provide name, email, and password")

        normalized = normalize_email(clean_email)
        if not is_valid_email(normalized):
            raise ValidationError("Please provide a valid email")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        # The repository re-checks uniqueness atomically; this lookup skips the hash cost.
        if self._users.get_by_email(normalized) is not None:
            raise DuplicateEmailError()

        user: UserEntity = {
            "id": new_id(),
            "name": clean_name,
            "email": normalized,
            "password_hash": hash_password(password, rounds=self._rounds),
            "created_at": utcnow(),
        }
        created = self._users.add(user)
        logger.info("user.registered", user_id=created["id"])
        return public_user(created)

    def verify_credentials(self, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        Return the public projection of the user owning email/password.

        Raises:
            ValidationError: email or password missing.
            InvalidCredentialsError: unknown email or wrong password (indistinguishable).
        """
        clean_email = clean_text(email)
        if clean_email is None or not password:
            raise ValidationError("Please provide email and password")

        user = self._users.get_by_email(normalize_email(clean_email))
        if user is None:
            verify_password(password, self._decoy_hash)
            logger.info("auth.login_failed")
            raise InvalidCredentialsError()
        if not verify_password(password, user["password_hash"]):
            logger.info("auth.login_failed", user_id=user["id"])
            raise InvalidCredentialsError()

        logger.info("auth.login_succeeded", user_id=user["id"])
        return public_user(user)

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = self._users.get(user_id)
        return None if user is None else public_user(user)
