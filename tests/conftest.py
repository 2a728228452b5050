import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_ROOT = Path(tempfile.mkdtemp(prefix="visa_portal_tests_"))

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_ROOT / 'import.db'}")
os.environ.setdefault("UPLOAD_DIR", str(TEST_ROOT / "uploads"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("BYPASS_PHONE_VERIFICATION", "false")
os.environ.pop("SEED_ADMIN_PASSWORD", None)
os.environ.pop("LOG_DIR", None)

import visa_portal.main as main  # noqa: E402  (import after env vars are set)
from visa_portal.database import Database  # noqa: E402
from visa_portal.models.admin import Admin  # noqa: E402
from visa_portal.models.user import User  # noqa: E402
from visa_portal.services.file_storage import LocalFileStorage  # noqa: E402
from visa_portal.services.password_service import hash_password  # noqa: E402
from visa_portal.services.payment_gateway import PaymentGatewayError, get_payment_gateway  # noqa: E402
from visa_portal.services.sms_service import get_sms_sender  # noqa: E402
from visa_portal.services.token_service import issue_token  # noqa: E402

VALID_SIGNATURE = "valid_signature"


class FakePaymentGateway:
    """In-memory stand-in for Razorpay."""

    def __init__(self):
        self.orders = []
        self.payment_status = "captured"
        self.fail_create = False

    def create_order(self, amount, currency, receipt, notes):
        if self.fail_create:
            raise PaymentGatewayError("gateway down")
        order = {
            "id": f"order_test_{len(self.orders) + 1}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        self.orders.append(order)
        return order

    def verify_signature(self, order_id, payment_id, signature):
        return signature == VALID_SIGNATURE

    def fetch_payment(self, payment_id):
        return {
            "id": payment_id,
            "status": self.payment_status,
            "amount": self.orders[-1]["amount"] if self.orders else 0,
            "currency": "INR",
            "method": "upi",
            "vpa": "applicant@upi",
        }


class RecordingSmsSender:
    def __init__(self):
        self.sent = []

    def send_otp(self, phone, otp):
        self.sent.append((phone, otp))
        return f"test-message-{len(self.sent)}"


@pytest.fixture()
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def storage(tmp_path):
    return LocalFileStorage(tmp_path / "uploads")


@pytest.fixture()
def db_session(database):
    with database.session() as session:
        yield session


@pytest.fixture()
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture()
def sms_sender():
    return RecordingSmsSender()


@pytest.fixture()
def app(database, storage, payment_gateway, sms_sender):
    application = main.create_app(database=database, storage=storage)
    application.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    application.dependency_overrides[get_sms_sender] = lambda: sms_sender
    return application


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session):
    def _make_user(phone="+919876543210", payment_status="pending", **fields):
        user = User(
            phone=phone,
            name=fields.pop("name", "Asha Rao"),
            email=fields.pop("email", "asha@example.com"),
            passport_number=fields.pop("passport_number", "K1234567"),
            payment_status=payment_status,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_admin(db_session):
    def _make_admin(username="siteadmin", password="S3cretPw", is_active=True):
        admin = Admin(username=username, password_hash=hash_password(password), is_active=is_active)
        db_session.add(admin)
        db_session.commit()
        db_session.refresh(admin)
        return admin

    return _make_admin


@pytest.fixture()
def auth_header():
    def _auth_header(principal_id, principal_type="user"):
        return {"Authorization": f"Bearer {issue_token(principal_id, principal_type)}"}

    return _auth_header
