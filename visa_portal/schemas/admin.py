from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class PaymentStatusEnum(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class AdminResponse(BaseModel):
    id: int
    username: str
    email: str | None = None
    last_login: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
