import hmac
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from visa_portal.config import settings
from visa_portal.models.otp_token import OTPToken

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


def generate_otp() -> str:
    return f"{secrets.randbelow(900000) + 100000:06d}"


def issue_otp(db: Session, phone: str, now: datetime | None = None, code: str | None = None) -> OTPToken:
    """Persist a fresh code for ``phone``.

    Older codes for the same phone are left alone; ``verify_otp`` only ever
    considers the most recently issued unconsumed one.
    """
    now = now or datetime.utcnow()
    token = OTPToken(
        phone=phone,
        code=code or generate_otp(),
        expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        created_at=now,
        used=False,
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    logger.info("Issued OTP id=%s for %s expiring %s", token.id, phone, token.expires_at.isoformat())
    return token


def verify_otp(db: Session, phone: str, code: str, now: datetime | None = None) -> bool:
    now = now or datetime.utcnow()
    if not isinstance(code, str) or not code.isascii():
        return False

    token = (
        db.query(OTPToken)
        .filter(OTPToken.phone == phone, OTPToken.used == False)  # noqa: E712
        .order_by(OTPToken.created_at.desc(), OTPToken.id.desc())
        .first()
    )
    if not token:
        logger.info("OTP verification for %s failed: no outstanding code", phone)
        return False
    if token.expires_at <= now:
        logger.info("OTP verification for %s failed: code id=%s expired", phone, token.id)
        return False
    if not hmac.compare_digest(token.code, code):
        logger.info("OTP verification for %s failed: code mismatch", phone)
        return False

    # Conditional update so two concurrent verifications cannot both consume it
    consumed = (
        db.query(OTPToken)
        .filter(OTPToken.id == token.id, OTPToken.used == False)  # noqa: E712
        .update({OTPToken.used: True}, synchronize_session=False)
    )
    db.commit()
    if consumed != 1:
        logger.warning("OTP id=%s for %s was consumed concurrently", token.id, phone)
        return False
    return True


def otp_rate_limited(db: Session, phone: str, now: datetime | None = None) -> bool:
    now = now or datetime.utcnow()
    window_start = now - timedelta(seconds=settings.OTP_RATE_LIMIT_WINDOW_SECONDS)
    recent = (
        db.query(OTPToken)
        .filter(OTPToken.phone == phone, OTPToken.created_at > window_start)
        .count()
    )
    return recent >= settings.OTP_RATE_LIMIT_MAX_REQUESTS


def cleanup_expired_otps(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.utcnow()
    deleted = (
        db.query(OTPToken)
        .filter(OTPToken.expires_at < now)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Cleaned up %s expired OTPs", deleted)
    return deleted
