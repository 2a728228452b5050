import logging
import time
from datetime import datetime

from sqlalchemy.orm import Session

from visa_portal.config import settings
from visa_portal.database import unit_of_work
from visa_portal.models.payment_transaction import PaymentTransaction
from visa_portal.models.user import User
from visa_portal.services.payment_gate import is_payment_complete
from visa_portal.services.payment_gateway import PaymentGateway, PaymentGatewayError
from visa_portal.utils.errors import ExternalServiceError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Amounts in paise
PAYMENT_AMOUNTS = {
    "employment_visa": 350000,
    "family_visa": 300000,
    "visit_visa": 250000,
    "student_visa": 300000,
    "business_visa": 400000,
    "other": 350000,
}

APPOINTMENT_TYPE_LABELS = {
    "employment_visa": "Employment Visa Medical",
    "family_visa": "Family Visa Medical",
    "visit_visa": "Visit Visa Medical",
    "student_visa": "Student Visa Medical",
    "business_visa": "Business Visa Medical",
    "other": "Other",
}


def get_payment_amount(appointment_type: str | None) -> int:
    return PAYMENT_AMOUNTS.get(appointment_type or "other", PAYMENT_AMOUNTS["other"])


def format_amount(amount_in_paise: int) -> str:
    return f"₹{amount_in_paise // 100:,}"


def generate_receipt_id(user_id: int, appointment_type: str) -> str:
    # gateway receipts are capped at 40 characters
    return f"rcpt_{user_id}_{appointment_type[:12]}_{int(time.time())}"[:40]


def get_payment_method_details(payment: dict) -> dict:
    method = payment.get("method")
    if not method:
        return {"method": "unknown", "details": {}}
    details = {}
    if method == "card":
        card = payment.get("card") or {}
        details = {
            "card_type": card.get("type"),
            "card_network": card.get("network"),
            "card_last4": card.get("last4"),
        }
    elif method == "upi":
        details = {"vpa": payment.get("vpa")}
    elif method == "netbanking":
        details = {"bank": payment.get("bank")}
    elif method == "wallet":
        details = {"wallet": payment.get("wallet")}
    return {"method": method, "details": details}


def create_payment_order(db: Session, gateway: PaymentGateway, user: User) -> dict:
    appointment_type = (user.appointment_details or {}).get("appointment_type")
    if not appointment_type:
        raise ValidationError("Please complete appointment details first")
    if is_payment_complete(user):
        raise ValidationError("Payment already completed for this appointment")

    amount = get_payment_amount(appointment_type)
    receipt = generate_receipt_id(user.id, appointment_type)
    try:
        order = gateway.create_order(
            amount=amount,
            currency=settings.PAYMENT_CURRENCY,
            receipt=receipt,
            notes={
                "user_id": str(user.id),
                "appointment_type": appointment_type,
                "user_phone": user.phone,
            },
        )
    except PaymentGatewayError as exc:
        raise ExternalServiceError("Failed to create payment order") from exc

    with unit_of_work(db):
        db.add(
            PaymentTransaction(
                user_id=user.id,
                gateway_order_id=order["id"],
                amount=order.get("amount", amount),
                currency=order.get("currency", settings.PAYMENT_CURRENCY),
                status="created",
            )
        )
        user.payment_status = "pending"

    logger.info("Payment order %s created for user_id=%s amount=%s", order["id"], user.id, amount)
    return {
        "payment_method": "razorpay",
        "order_id": order["id"],
        "amount": order.get("amount", amount),
        "amount_formatted": format_amount(order.get("amount", amount)),
        "currency": order.get("currency", settings.PAYMENT_CURRENCY),
        "receipt": receipt,
        "key": settings.RAZORPAY_KEY_ID,
    }


def verify_payment(
    db: Session,
    gateway: PaymentGateway,
    user: User,
    order_id: str,
    payment_id: str,
    signature: str,
) -> dict:
    if not gateway.verify_signature(order_id, payment_id, signature):
        logger.warning("Payment signature mismatch for user_id=%s order=%s", user.id, order_id)
        raise ValidationError("Payment verification failed")

    try:
        payment = gateway.fetch_payment(payment_id)
    except PaymentGatewayError as exc:
        raise ExternalServiceError("Failed to verify payment details") from exc

    if payment.get("status") != "captured":
        raise ValidationError("Payment not completed successfully")

    transaction = (
        db.query(PaymentTransaction)
        .filter(
            PaymentTransaction.gateway_order_id == order_id,
            PaymentTransaction.user_id == user.id,
        )
        .first()
    )
    if not transaction:
        raise NotFoundError("Payment transaction not found")

    with unit_of_work(db):
        transaction.gateway_payment_id = payment_id
        transaction.gateway_signature = signature
        transaction.status = "paid"
        transaction.updated_at = datetime.utcnow()
        user.payment_status = "completed"
        user.payment_id = payment_id
        user.updated_at = datetime.utcnow()

    db.refresh(user)
    db.refresh(transaction)
    logger.info("Payment %s verified for user_id=%s", payment_id, user.id)

    method_info = get_payment_method_details(payment)
    return {
        "payment": {
            "id": payment_id,
            "order_id": order_id,
            "amount": payment.get("amount", transaction.amount),
            "currency": payment.get("currency", transaction.currency),
            "status": payment.get("status"),
            "method": method_info["method"],
            "method_details": method_info["details"],
        },
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "phone": user.phone,
            "payment_status": user.payment_status,
            "appointment_details": user.appointment_details,
        },
        "transaction": {
            "id": transaction.id,
            "status": transaction.status,
            "updated_at": transaction.updated_at,
        },
    }
