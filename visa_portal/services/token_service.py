import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from visa_portal.config import settings

logger = logging.getLogger(__name__)

PRINCIPAL_TYPES = ("user", "admin")


@dataclass(frozen=True)
class TokenClaims:
    id: int
    type: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def issue_token(principal_id: int, principal_type: str, now: datetime | None = None) -> str:
    """Sign a bearer token for a user or admin principal."""
    if principal_type not in PRINCIPAL_TYPES:
        raise ValueError(f"Unknown principal type: {principal_type!r}")

    issued_at = _timestamp(now or _utcnow())
    expires_at = issued_at + int(timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES).total_seconds())
    claims = {
        "sub": str(principal_id),
        "id": int(principal_id),
        "type": principal_type,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def verify_token(token: str | None, now: datetime | None = None) -> TokenClaims | None:
    """Return the token's claims, or None for anything that is not a live token we signed.

    Expiry is checked here rather than by jose so that a token whose ``exp``
    equals the current second is already rejected.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        return None

    principal_id = payload.get("id")
    principal_type = payload.get("type")
    expires_at = payload.get("exp")
    issued_at = payload.get("iat")
    if (
        not isinstance(principal_id, int)
        or isinstance(principal_id, bool)
        or principal_type not in PRINCIPAL_TYPES
        or not isinstance(expires_at, int)
        or not isinstance(issued_at, int)
    ):
        logger.info("Rejected bearer token with malformed claims")
        return None

    if expires_at <= _timestamp(now or _utcnow()):
        return None

    return TokenClaims(
        id=principal_id,
        type=principal_type,
        issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
    )
