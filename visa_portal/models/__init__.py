from visa_portal.models.activity_log import ActivityLog
from visa_portal.models.admin import Admin
from visa_portal.models.otp_token import OTPToken
from visa_portal.models.payment_transaction import PaymentTransaction
from visa_portal.models.user import User

__all__ = ["ActivityLog", "Admin", "OTPToken", "PaymentTransaction", "User"]
