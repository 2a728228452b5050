from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from visa_portal.database import Base

TRANSACTION_STATUSES = ("created", "paid", "failed", "cancelled")


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    gateway_order_id = Column(String(255), unique=True, index=True, nullable=False)
    gateway_payment_id = Column(String(255), nullable=True)
    gateway_signature = Column(String(255), nullable=True)
    amount = Column(Integer, nullable=False)  # paise
    currency = Column(String(8), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default="created")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", backref="payment_transactions")
