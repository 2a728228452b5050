from visa_portal.models.user import User
from visa_portal.utils.errors import PreconditionError


def is_payment_complete(user: User) -> bool:
    return user.payment_status == "completed"


def ensure_payment_complete(user: User) -> None:
    """Raise unless the freshly loaded ``user`` has a captured payment."""
    if not is_payment_complete(user):
        raise PreconditionError("Cannot upload appointment slip. Payment must be completed first.")
