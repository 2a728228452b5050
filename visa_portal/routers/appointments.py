import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from visa_portal.database import get_db
from visa_portal.models.user import User
from visa_portal.schemas.user import AppointmentRequest, UserResponse
from visa_portal.services.auth_middleware import get_current_user
from visa_portal.services.payment_service import APPOINTMENT_TYPE_LABELS, format_amount, get_payment_amount
from visa_portal.services.principal_repository import PrincipalRepository
from visa_portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


def _appointment_payload(user: User) -> dict:
    details = dict(user.appointment_details or {})
    appointment_type = details.get("appointment_type")
    if appointment_type:
        details["appointment_type_label"] = APPOINTMENT_TYPE_LABELS.get(appointment_type, appointment_type)
        details["amount"] = get_payment_amount(appointment_type)
        details["amount_formatted"] = format_amount(details["amount"])
    return {
        "user": UserResponse.model_validate(user).model_dump(),
        "appointment_details": details,
    }


@router.post("")
def save_appointment(
    body: AppointmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        details = body.appointment_details.model_dump(mode="json")
        user = PrincipalRepository(db).update_user(
            current_user.id,
            {
                "name": body.name.strip(),
                "email": str(body.email).lower(),
                "passport_number": body.passport_number.strip().upper(),
                "appointment_details": details,
            },
        )
        logger.info("Appointment details saved for user_id=%s type=%s", user.id, details["appointment_type"])
        return create_response(
            message="Appointment details saved successfully",
            data=_appointment_payload(user),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("")
def get_appointment(current_user: User = Depends(get_current_user)):
    try:
        return create_response(
            message="Appointment details fetched",
            data=_appointment_payload(current_user),
        )
    except Exception as exc:
        return handle_exception(exc)
