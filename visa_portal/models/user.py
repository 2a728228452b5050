from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String

from visa_portal.database import Base

PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Filled by the appointment form; empty placeholders until then
    name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    phone = Column(String(20), unique=True, index=True, nullable=False)
    passport_number = Column(String(50), nullable=False, default="")
    appointment_details = Column(JSON, nullable=False, default=dict)

    payment_status = Column(String(20), nullable=False, default="pending", index=True)
    payment_id = Column(String(255), nullable=True)

    # Relative path of the current appointment slip in the file store
    appointment_slip_path = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def has_appointment_details(self) -> bool:
        return bool(self.appointment_details)
