from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from visa_portal.database import Base


class OTPToken(Base):
    __tablename__ = "otp_tokens"
    __table_args__ = (Index("ix_otp_tokens_phone_created", "phone", "created_at"),)

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(20), nullable=False, index=True)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
