import os
from pathlib import Path
from dotenv import load_dotenv
from fastapi.security import HTTPBearer

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


def _as_bool(value: str | None, default: str = "false") -> bool:
    return (value if value is not None else default).strip().lower() in {"1", "true", "yes"}


class Settings:
    PROJECT_NAME = "Medical Visa Portal"
    APP_ENV = os.getenv("APP_ENV", "production")

    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'visa_portal.db'}")

    JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 7 * 24 * 60))

    OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", 10))
    OTP_RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("OTP_RATE_LIMIT_WINDOW_SECONDS", 60))
    OTP_RATE_LIMIT_MAX_REQUESTS = int(os.getenv("OTP_RATE_LIMIT_MAX_REQUESTS", 3))
    BYPASS_PHONE_VERIFICATION = _as_bool(os.getenv("BYPASS_PHONE_VERIFICATION"))
    BYPASS_OTP_CODE = "123456"

    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").lower()
    UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads")))
    MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

    SPACES_REGION = os.getenv("SPACES_REGION")
    SPACES_ENDPOINT = os.getenv("SPACES_ENDPOINT")
    SPACES_KEY = os.getenv("SPACES_KEY")
    SPACES_SECRET = os.getenv("SPACES_SECRET")
    SPACES_NAME = os.getenv("SPACES_NAME")
    SPACES_BASE_PATH = (os.getenv("SPACES_BASE_PATH") or "visa_portal").strip("/")

    RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_API_URL = os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1")
    RAZORPAY_TIMEOUT_SECONDS = int(os.getenv("RAZORPAY_TIMEOUT_SECONDS", 10))
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR = os.getenv("LOG_DIR")
    LOG_RETENTION_DAYS = int(os.getenv("LOG_RETENTION_DAYS", 30))

    SEED_ADMIN_USERNAME = os.getenv("SEED_ADMIN_USERNAME", "admin")
    SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD")

    # auto_error=False so a missing header reaches our own 401 handling
    bearer_scheme = HTTPBearer(auto_error=False)
    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"


settings = Settings()
