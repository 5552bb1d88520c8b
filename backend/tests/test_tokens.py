"""Unit tests for token issuing and reading: claims, refresh token format, configuration and algorithm checks."""
import base64
from datetime import timedelta

import pytest
from jose import jwt

from lms_api import config
from lms_api.errors import ConfigurationError, InvalidTokenError
from lms_api.models import RoleName, User
from lms_api.services.credential_store import CredentialStore
from lms_api.services.tokens import (
    CLAIM_ID,
    CLAIM_NAME,
    CLAIM_ROLE,
    REFRESH_TOKEN_LIFETIME,
    TokenIssuer,
    decode_access_token,
    generate_refresh_token,
    read_expired_access_token,
    utcnow,
)

from conftest import PASSWORD


@pytest.fixture
def store(db):
    return CredentialStore(db)


@pytest.fixture
def teacher(store):
    user = User(username="tina", email="tina@school.org", first_name="Tina", last_name="Teach")
    assert store.create_user(user, PASSWORD).succeeded
    assert store.add_to_role(user, RoleName.TEACHER).succeeded
    return user


def _sign(claims: dict, algorithm: str = "HS256", key: str | None = None) -> str:
    return jwt.encode(claims, key or config.settings.secret_key, algorithm=algorithm)


def _base_claims(**overrides) -> dict:
    now = utcnow()
    claims = {
        CLAIM_NAME: "tina",
        CLAIM_ID: "some-id",
        "aud": config.settings.jwt_audience,
        "iss": config.settings.jwt_issuer,
        "iat": int(now.timestamp()),
        "exp": int((now - timedelta(minutes=5)).timestamp()),
    }
    claims.update(overrides)
    return claims


def test_refresh_token_is_32_random_bytes_base64():
    token = generate_refresh_token()
    assert len(base64.b64decode(token)) == 32
    assert token != generate_refresh_token()


def test_issue_puts_identity_and_roles_in_claims(store, teacher):
    pair = TokenIssuer(store).issue(teacher, extend_expiry=True)
    claims = decode_access_token(pair.access_token)
    assert claims is not None
    assert claims[CLAIM_NAME] == "tina"
    assert claims[CLAIM_ID] == teacher.id
    assert claims[CLAIM_ROLE] == ["Teacher"]
    assert claims["aud"] == config.settings.jwt_audience
    assert claims["iss"] == config.settings.jwt_issuer
    assert claims["exp"] - claims["iat"] == config.settings.jwt_expires_minutes * 60


def test_issue_with_extend_rotates_and_persists(store, teacher):
    issuer = TokenIssuer(store)
    first = issuer.issue(teacher, extend_expiry=True)
    second = issuer.issue(teacher, extend_expiry=True)
    assert first.refresh_token != second.refresh_token
    stored = store.find_by_id(teacher.id)
    assert stored.refresh_token == second.refresh_token
    remaining = stored.refresh_token_expires_at - utcnow()
    assert REFRESH_TOKEN_LIFETIME - timedelta(minutes=1) < remaining <= REFRESH_TOKEN_LIFETIME


def test_issue_without_extend_reuses_stored_token(store, teacher):
    issuer = TokenIssuer(store)
    first = issuer.issue(teacher, extend_expiry=True)
    expires = store.find_by_id(teacher.id).refresh_token_expires_at
    again = issuer.issue(teacher, extend_expiry=False)
    assert again.refresh_token == first.refresh_token
    assert store.find_by_id(teacher.id).refresh_token_expires_at == expires


def test_issue_without_extend_needs_a_stored_token(store, teacher):
    with pytest.raises(ValueError):
        TokenIssuer(store).issue(teacher, extend_expiry=False)


def test_issue_rejects_missing_user(store):
    with pytest.raises(ValueError):
        TokenIssuer(store).issue(None, extend_expiry=True)


def test_issue_fails_without_secret_and_persists_nothing(store, teacher, monkeypatch):
    monkeypatch.setattr(config.settings, "secret_key", "")
    with pytest.raises(ConfigurationError) as exc:
        TokenIssuer(store).issue(teacher, extend_expiry=True)
    assert "SECRET_KEY" in str(exc.value)
    assert store.find_by_id(teacher.id).refresh_token is None


def test_production_rejects_dev_secret(monkeypatch):
    monkeypatch.setattr(config.settings, "env", "production")
    monkeypatch.setattr(config.settings, "secret_key", config.DEV_SECRET_KEY)
    with pytest.raises(ConfigurationError):
        config.require_jwt_settings()


def test_decode_access_token_rejects_expired_and_foreign_tokens():
    assert decode_access_token(_sign(_base_claims())) is None
    future = int((utcnow() + timedelta(minutes=5)).timestamp())
    assert decode_access_token(_sign(_base_claims(exp=future))) is not None
    assert decode_access_token(_sign(_base_claims(exp=future), key="another-secret")) is None
    assert decode_access_token("not-a-jwt") is None


def test_read_expired_access_token_accepts_expired_token():
    claims = read_expired_access_token(_sign(_base_claims()))
    assert claims[CLAIM_NAME] == "tina"


@pytest.mark.parametrize(
    "token_factory",
    [
        lambda: _sign(_base_claims(aud="https://someone-else")),
        lambda: _sign(_base_claims(iss="https://someone-else")),
        lambda: _sign(_base_claims(), key="another-secret"),
        lambda: _sign(_base_claims(), algorithm="HS512"),
        lambda: "not-a-jwt",
    ],
    ids=["audience", "issuer", "signature", "algorithm", "malformed"],
)
def test_read_expired_access_token_rejects_invalid(token_factory):
    with pytest.raises(InvalidTokenError):
        read_expired_access_token(token_factory())
