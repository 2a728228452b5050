import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from visa_portal.config import settings
from visa_portal.database import get_db
from visa_portal.models.admin import Admin
from visa_portal.schemas.admin import AdminResponse
from visa_portal.schemas.auth import AdminLoginRequest, SendOtpRequest, VerifyOtpRequest
from visa_portal.schemas.user import UserSummary
from visa_portal.services.auth_middleware import AuthenticatedPrincipal, get_current_principal
from visa_portal.services.otp_service import issue_otp, otp_rate_limited, verify_otp
from visa_portal.services.password_service import verify_password
from visa_portal.services.principal_repository import PrincipalRepository
from visa_portal.services.sms_service import SmsSender, get_sms_sender
from visa_portal.services.token_service import issue_token
from visa_portal.utils.errors import AuthenticationError, RateLimitError, ValidationError
from visa_portal.utils.phone import format_phone_number, is_valid_phone_number
from visa_portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

OTP_PATTERN = re.compile(r"^\d{6}$")


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _canonical_phone(raw_phone: str) -> str:
    phone = format_phone_number(raw_phone.strip())
    if not is_valid_phone_number(phone):
        raise ValidationError("Invalid phone number format")
    return phone


def authenticate_admin(db: Session, username: str, password: str) -> Admin | None:
    admin = PrincipalRepository(db).find_admin_by_username(username)
    if not admin or not admin.is_active:
        return None
    if not verify_password(password, admin.password_hash):
        return None

    try:
        admin.last_login = datetime.utcnow()
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Failed to update last login for admin id=%s", admin.id, exc_info=True)
    return admin


@router.post("/send-otp")
def send_otp(
    body: SendOtpRequest,
    db: Session = Depends(get_db),
    sms_sender: SmsSender = Depends(get_sms_sender),
):
    try:
        phone = _canonical_phone(body.phone)
        expires_in = settings.OTP_EXPIRE_MINUTES * 60

        if settings.BYPASS_PHONE_VERIFICATION:
            logger.warning("Phone verification bypassed for %s", phone)
            return create_response(
                message="OTP sent successfully (bypass mode)",
                data={"phone": phone, "otp": settings.BYPASS_OTP_CODE, "expires_in": expires_in},
            )

        if otp_rate_limited(db, phone):
            logger.warning("OTP rate limit hit for %s", phone)
            raise RateLimitError("Too many OTP requests. Please try again later.")

        token = issue_otp(db, phone)
        message_id = sms_sender.send_otp(phone, token.code)

        data = {"phone": phone, "message_id": message_id, "expires_in": expires_in}
        if settings.is_development:
            data["otp"] = token.code
        return create_response(message="OTP sent successfully", data=data)
    except Exception as exc:
        return handle_exception(exc)


@router.post("/verify-otp")
def verify_otp_login(body: VerifyOtpRequest, db: Session = Depends(get_db)):
    try:
        phone = _canonical_phone(body.phone)
        code = body.otp.strip()
        if not OTP_PATTERN.match(code):
            raise ValidationError("Invalid OTP format")

        if settings.BYPASS_PHONE_VERIFICATION:
            is_valid = code == settings.BYPASS_OTP_CODE
        else:
            is_valid = verify_otp(db, phone, code)
        if not is_valid:
            raise AuthenticationError("Invalid or expired OTP")

        user, created = PrincipalRepository(db).find_or_create_user(phone)
        if created:
            logger.info("Created user id=%s for %s on first login", user.id, phone)

        token = issue_token(user.id, "user")
        logger.info("User authenticated successfully: %s", phone)
        return create_response(
            message="OTP verified successfully",
            data={
                "token": token,
                "token_type": "bearer",
                "user": UserSummary.model_validate(user).model_dump(),
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/admin-login")
def admin_login(body: AdminLoginRequest, request: Request, db: Session = Depends(get_db)):
    try:
        username = body.username.strip()
        password = body.password.strip()
        if not username or not password:
            raise ValidationError("Username and password cannot be empty")
        if not 3 <= len(username) <= 50:
            raise ValidationError("Username must be between 3 and 50 characters")
        if len(password) < 6:
            raise ValidationError("Password must be at least 6 characters long")

        admin = authenticate_admin(db, username, password)
        if not admin:
            logger.warning("Failed admin login attempt for username=%s from %s", username, _client_ip(request))
            raise AuthenticationError("Invalid username or password")

        token = issue_token(admin.id, "admin")
        logger.info("Admin logged in successfully: %s from %s", admin.username, _client_ip(request))
        return create_response(
            message="Admin login successful",
            data={
                "token": token,
                "token_type": "bearer",
                "admin": AdminResponse.model_validate(admin).model_dump(),
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/verify-token")
def verify_token_endpoint(auth: AuthenticatedPrincipal = Depends(get_current_principal)):
    try:
        if auth.type == "user":
            principal = UserSummary.model_validate(auth.principal).model_dump()
        else:
            principal = AdminResponse.model_validate(auth.principal).model_dump()
        return create_response(
            message="Token is valid",
            data={"type": auth.type, auth.type: principal, "expires_at": auth.claims.expires_at},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/logout")
def logout(auth: AuthenticatedPrincipal = Depends(get_current_principal)):
    # Tokens are stateless; the client discards its copy.
    try:
        logger.info("%s id=%s logged out", auth.type, auth.principal.id)
        return create_response(message="Logout successful", data={"id": auth.principal.id, "type": auth.type})
    except Exception as exc:
        return handle_exception(exc)
