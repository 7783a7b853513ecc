import logging
from datetime import datetime, timedelta, timezone

import pytest

from subcatalog.config import DEV_FALLBACK_SECRET, Config
from subcatalog.core.security import SessionIssuer, hash_password, verify_password
from subcatalog.main import create_app


@pytest.fixture
def issuer():
    return SessionIssuer(secret_key="unit-test-secret")


def test_minted_token_verifies_to_original_claims(issuer):
    token = issuer.mint({"sub": "42", "username": "alice"})

    claims = issuer.verify(token)

    assert claims["sub"] == "42"
    assert claims["username"] == "alice"
    assert "exp" in claims


def test_expired_token_fails_verification(issuer):
    token = issuer.mint({"sub": "42", "username": "alice"}, ttl=timedelta(seconds=-1))

    assert issuer.verify(token) is None


def test_token_signed_with_other_key_is_rejected(issuer):
    token = SessionIssuer(secret_key="someone-else").mint({"sub": "42", "username": "alice"})

    assert issuer.verify(token) is None


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_malformed_tokens_never_raise(issuer, token):
    assert issuer.verify(token) is None


def test_default_ttl_is_seven_days(issuer):
    before = datetime.now(timezone.utc)
    claims = issuer.verify(issuer.mint({"sub": "1", "username": "x"}))

    assert issuer.default_ttl == timedelta(days=7)
    expires_in = claims["exp"] - before.timestamp()
    assert timedelta(days=7) - timedelta(minutes=1) < timedelta(seconds=expires_in) <= timedelta(days=7, seconds=1)


def test_password_hash_roundtrip():
    hashed = hash_password("password123")

    assert hashed != hash_password("password123")  # разная соль
    assert verify_password("password123", hashed)
    assert not verify_password("password124", hashed)


def test_token_without_identity_claims_is_unauthorized(client, app):
    token = app.state.session_issuer.mint({"role": "admin"})

    response = client.get("/auth/user", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_production_requires_secret_key(tmp_path):
    config = Config(
        ENVIRONMENT="production",
        SECRET_KEY=None,
        DATA_DIR=tmp_path / "data",
        LOGS_DIR=tmp_path / "logs",
        UPLOADS_DIR=tmp_path / "uploads",
    )

    with pytest.raises(RuntimeError):
        create_app(config)


def test_development_falls_back_with_warning(tmp_path, caplog):
    config = Config(
        ENVIRONMENT="development",
        SECRET_KEY=None,
        DATA_DIR=tmp_path / "data",
        LOGS_DIR=tmp_path / "logs",
        UPLOADS_DIR=tmp_path / "uploads",
    )

    with caplog.at_level(logging.WARNING, logger="subcatalog.config"):
        config.validate()

    assert config.SECRET_KEY == DEV_FALLBACK_SECRET
    assert any("SECRET_KEY" in record.getMessage() for record in caplog.records)


def test_unknown_config_override_is_rejected():
    with pytest.raises(AttributeError):
        Config(NOT_A_SETTING=1)


@pytest.mark.parametrize("setting", ["CATALOG_TABLE", "BCRYPT_ROUNDS"])
def test_import_time_settings_cannot_be_overridden(setting):
    with pytest.raises(AttributeError, match="окружения"):
        Config(**{setting: "other"})
