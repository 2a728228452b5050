import logging
import time
from typing import Protocol

from visa_portal.config import settings

logger = logging.getLogger(__name__)


class SmsSender(Protocol):
    def send_otp(self, phone: str, otp: str) -> str:
        """Deliver ``otp`` to ``phone`` and return a provider message id."""


def mask_code(otp: str) -> str:
    return "*" * max(len(otp) - 2, 0) + otp[-2:]


class LoggingSmsSender:
    """Stands in for an SMS provider; the code itself never reaches the log."""

    def send_otp(self, phone: str, otp: str) -> str:
        message_id = f"sms-logged-{int(time.time())}"
        logger.info(
            "SMS %s to %s: verification code %s, valid for %s minutes",
            message_id,
            phone,
            mask_code(otp),
            settings.OTP_EXPIRE_MINUTES,
        )
        return message_id


def get_sms_sender() -> SmsSender:
    return LoggingSmsSender()
