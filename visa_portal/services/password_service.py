import hashlib
import hmac
import secrets

HASH_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 120_000
SALT_BYTES = 16


def _derive(password: str, salt: bytes, iterations: int) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations).hex()


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    """Encode as ``scheme$iterations$salt_hex$digest_hex`` for storage on ``Admin.password_hash``."""
    salt = secrets.token_bytes(SALT_BYTES)
    return "$".join((HASH_SCHEME, str(iterations), salt.hex(), _derive(password, salt, iterations)))


def verify_password(password: str, password_hash: str | None) -> bool:
    parts = (password_hash or "").split("$")
    if len(parts) != 4 or parts[0] != HASH_SCHEME:
        return False
    _, iterations, salt_hex, digest = parts
    try:
        candidate = _derive(password, bytes.fromhex(salt_hex), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(candidate, digest)
