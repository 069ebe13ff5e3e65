from datetime import timedelta

import jwt
import pytest

from src.api.auth import IdentityResolver
from src.api.errors import InvalidTokenError, MissingTokenError
from src.api.models import Identity
from src.api.tokens import TokenConfig, TokenIssuer, TokenVerifier
from src.api.utils import utcnow


@pytest.fixture()
def config() -> TokenConfig:
    return TokenConfig(secret="per-test-secret-long-enough-for-hs256")


@pytest.fixture()
def user(credentials) -> dict:
    return credentials.register("John Doe", "john@example.com", "password123")


@pytest.fixture()
def resolver(config, credentials) -> IdentityResolver:
    return IdentityResolver(TokenVerifier(config), credentials)


class TestIssuer:
    def test_token_embeds_subject_and_thirty_day_horizon(self, config):
        fixed = utcnow().replace(microsecond=0)
        token = TokenIssuer(config, clock=lambda: fixed).issue("user-1")
        payload = jwt.decode(token, "per-test-secret-long-enough-for-hs256", algorithms=["HS256"])
        assert payload["sub"] == "user-1"
        assert payload["iat"] == int(fixed.timestamp())
        assert payload["exp"] - payload["iat"] == int(timedelta(days=30).total_seconds())

    def test_issue_is_deterministic_for_fixed_clock(self, config):
        fixed = utcnow()
        issuer = TokenIssuer(config, clock=lambda: fixed)
        assert issuer.issue("user-1") == issuer.issue("user-1")


class TestVerifier:
    def test_round_trip(self, config):
        token = TokenIssuer(config).issue("user-1")
        assert TokenVerifier(config).verify(token) == "user-1"

    def test_expired_token_rejected(self, config):
        past = utcnow() - timedelta(days=31)
        token = TokenIssuer(config, clock=lambda: past).issue("user-1")
        with pytest.raises(InvalidTokenError):
            TokenVerifier(config).verify(token)

    def test_other_secret_rejected(self, config):
        token = TokenIssuer(TokenConfig(secret="someone-else-entirely-with-a-long-key")).issue("user-1")
        with pytest.raises(InvalidTokenError):
            TokenVerifier(config).verify(token)

    def test_tampered_payload_rejected(self, config):
        token = TokenIssuer(config).issue("user-1")
        header, payload, signature = token.split(".")
        forged = jwt.encode({"sub": "user-2", "iat": 0, "exp": 9999999999}, "an-attacker-key-that-is-long-enough")
        forged_payload = forged.split(".")[1]
        with pytest.raises(InvalidTokenError):
            TokenVerifier(config).verify(".".join([header, forged_payload, signature]))

    @pytest.mark.parametrize("token", ["garbage", "a.b.c", ""])
    def test_unparseable_rejected(self, config, token):
        with pytest.raises(InvalidTokenError):
            TokenVerifier(config).verify(token)

    def test_missing_subject_rejected(self, config):
        now = utcnow()
        token = jwt.encode({"iat": now, "exp": now + timedelta(days=1)}, config.secret, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            TokenVerifier(config).verify(token)


class TestIdentityResolver:
    def test_resolves_to_registered_user(self, config, resolver, user):
        token = TokenIssuer(config).issue(user["id"])
        identity = resolver.resolve(f"Bearer {token}")
        assert identity == Identity(
            id=user["id"], name=user["name"], email=user["email"], created_at=user["created_at"]
        )
        assert not hasattr(identity, "password_hash")

    @pytest.mark.parametrize("header", [None, "", "Token abc", "bearer abc", "Bearer ", "Bearer    "])
    def test_missing_or_malformed_header(self, resolver, header):
        with pytest.raises(MissingTokenError):
            resolver.resolve(header)

    def test_expired_token(self, config, resolver, user):
        past = utcnow() - timedelta(days=30, seconds=5)
        token = TokenIssuer(config, clock=lambda: past).issue(user["id"])
        with pytest.raises(InvalidTokenError):
            resolver.resolve(f"Bearer {token}")

    def test_deleted_user_is_indistinguishable_from_forgery(self, config, resolver, users, user):
        token = TokenIssuer(config).issue(user["id"])
        users.remove(user["id"])
        with pytest.raises(InvalidTokenError) as deleted:
            resolver.resolve(f"Bearer {token}")
        with pytest.raises(InvalidTokenError) as forged:
            resolver.resolve("Bearer not-a-jwt")
        assert deleted.value.message == forged.value.message

    def test_resolve_does_not_touch_user_record(self, config, resolver, users, user):
        before = users.get(user["id"])
        resolver.resolve(f"Bearer {TokenIssuer(config).issue(user['id'])}")
        assert users.get(user["id"]) == before


def test_resolver_reads_users_through_credential_store(config, credentials, user, monkeypatch):
    seen = []
    original = credentials.get_user

    def recording_get_user(user_id):
        seen.append(user_id)
        return original(user_id)

    monkeypatch.setattr(credentials, "get_user", recording_get_user)
    resolver = IdentityResolver(TokenVerifier(config), credentials)
    identity = resolver.resolve(f"Bearer {TokenIssuer(config).issue(user['id'])}")
    assert seen == [user["id"]]
    assert identity.email == "john@example.com"
