import logging
import mimetypes
from pathlib import Path

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from visa_portal.database import get_db
from visa_portal.models.payment_transaction import PaymentTransaction
from visa_portal.models.user import User
from visa_portal.schemas.user import UserResponse
from visa_portal.services.auth_middleware import get_current_user
from visa_portal.services.file_storage import FileStorage, get_file_storage
from visa_portal.services.payment_service import APPOINTMENT_TYPE_LABELS
from visa_portal.utils.errors import NotFoundError
from visa_portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])


def derive_application_status(payment_status: str, slip_available: bool) -> str:
    if payment_status == "failed":
        return "payment_failed"
    if payment_status == "pending":
        return "payment_pending"
    if payment_status == "completed":
        return "ready" if slip_available else "processing"
    return "unknown"


def _slip_available(storage: FileStorage, path: str | None) -> bool:
    if not path:
        return False
    try:
        return storage.file_exists(path)
    except Exception:
        logger.warning("Could not check slip %s", path, exc_info=True)
        return False


@router.get("/profile")
def get_profile(
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
    current_user: User = Depends(get_current_user),
):
    try:
        transaction = (
            db.query(PaymentTransaction)
            .filter(PaymentTransaction.user_id == current_user.id)
            .order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc())
            .first()
        )
        slip_available = _slip_available(storage, current_user.appointment_slip_path)
        appointment_type = (current_user.appointment_details or {}).get("appointment_type")

        payload = UserResponse.model_validate(current_user).model_dump()
        payload.update(
            {
                "appointment_type_label": APPOINTMENT_TYPE_LABELS.get(appointment_type) if appointment_type else None,
                "has_appointment_details": current_user.has_appointment_details,
                "appointment_slip_available": slip_available,
                "application_status": derive_application_status(current_user.payment_status, slip_available),
                "latest_transaction": None,
            }
        )
        if transaction:
            payload["latest_transaction"] = {
                "order_id": transaction.gateway_order_id,
                "payment_id": transaction.gateway_payment_id,
                "amount": transaction.amount,
                "currency": transaction.currency,
                "status": transaction.status,
                "created_at": transaction.created_at,
            }
        return create_response(message="Profile fetched", data=payload)
    except Exception as exc:
        return handle_exception(exc)


@router.get("/download-slip")
def download_slip(
    storage: FileStorage = Depends(get_file_storage),
    current_user: User = Depends(get_current_user),
):
    try:
        path = current_user.appointment_slip_path
        if not path:
            raise NotFoundError("No appointment slip available")
        if not _slip_available(storage, path):
            logger.error("Slip %s recorded for user_id=%s is missing from storage", path, current_user.id)
            raise NotFoundError("Appointment slip file not found")

        filename = Path(path).name
        media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return Response(
            content=storage.read_file(path),
            media_type=media_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    except Exception as exc:
        return handle_exception(exc)
