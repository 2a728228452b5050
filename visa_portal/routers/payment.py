from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from visa_portal.database import get_db
from visa_portal.models.user import User
from visa_portal.schemas.payment import VerifyPaymentRequest
from visa_portal.services.auth_middleware import get_current_user
from visa_portal.services.payment_gateway import PaymentGateway, get_payment_gateway
from visa_portal.services.payment_service import create_payment_order, verify_payment
from visa_portal.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/payment", tags=["Payment"])


@router.post("/create-order")
def create_order(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    try:
        order = create_payment_order(db, gateway, current_user)
        return create_response(message="Payment order created successfully", data=order)
    except Exception as exc:
        return handle_exception(exc)


@router.post("/verify")
def verify(
    body: VerifyPaymentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    try:
        result = verify_payment(
            db,
            gateway,
            current_user,
            order_id=body.razorpay_order_id,
            payment_id=body.razorpay_payment_id,
            signature=body.razorpay_signature,
        )
        return create_response(message="Payment verified successfully", data=result)
    except Exception as exc:
        return handle_exception(exc)
