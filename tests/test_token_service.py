from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from visa_portal.config import settings
from visa_portal.services.token_service import issue_token, verify_token

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_issued_token_round_trips_identity_and_type():
    token = issue_token(42, "admin", now=NOW)

    claims = verify_token(token, now=NOW + timedelta(minutes=1))

    assert claims is not None
    assert claims.id == 42
    assert claims.type == "admin"
    assert claims.issued_at == NOW
    assert claims.expires_at == NOW + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def test_token_is_valid_until_expiry_and_invalid_from_it():
    token = issue_token(7, "user", now=NOW)
    expires_at = NOW + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    assert verify_token(token, now=expires_at - timedelta(seconds=1)) is not None
    assert verify_token(token, now=expires_at) is None
    assert verify_token(token, now=expires_at + timedelta(seconds=1)) is None


def test_unknown_principal_type_cannot_be_issued():
    with pytest.raises(ValueError):
        issue_token(1, "superuser")


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_garbage_tokens_are_rejected(token):
    assert verify_token(token) is None


def test_token_signed_with_another_secret_is_rejected():
    forged = jwt.encode(
        {"id": 1, "type": "admin", "iat": int(NOW.timestamp()), "exp": int(NOW.timestamp()) + 600},
        "some-other-secret",
        algorithm=settings.ALGORITHM,
    )

    assert verify_token(forged, now=NOW) is None


def test_token_with_malformed_claims_is_rejected():
    payload = {"id": "1", "type": "user", "iat": int(NOW.timestamp()), "exp": int(NOW.timestamp()) + 600}
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.ALGORITHM)

    assert verify_token(token, now=NOW) is None


def test_token_with_unknown_type_is_rejected():
    payload = {"id": 1, "type": "root", "iat": int(NOW.timestamp()), "exp": int(NOW.timestamp()) + 600}
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.ALGORITHM)

    assert verify_token(token, now=NOW) is None
