import re

_NON_DIGITS = re.compile(r"\D")
_CANONICAL = re.compile(r"^\+91\d{10}$")


def format_phone_number(phone: str) -> str:
    """Canonicalize Indian numbers to +91XXXXXXXXXX; return anything else unchanged."""
    cleaned = _NON_DIGITS.sub("", phone or "")
    if len(cleaned) == 10:
        return f"+91{cleaned}"
    if len(cleaned) == 12 and cleaned.startswith("91"):
        return f"+{cleaned}"
    if len(cleaned) == 13 and cleaned.startswith("091"):
        return f"+{cleaned[1:]}"
    return phone


def is_valid_phone_number(phone: str) -> bool:
    return bool(_CANONICAL.match(format_phone_number(phone or "")))
