"""Payment-gated appointment slip uploads.

The file store and the database share no transaction, so the pipeline orders
its writes to keep them consistent from the caller's point of view:

* the file is written before the database is touched, so a failed write
  leaves no metadata behind;
* the path update and its audit row commit together or not at all;
* the superseded file is deleted only after that commit, and only
  best-effort. A leftover old file is an acceptable orphan; a committed path
  without its file is not.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from visa_portal.config import settings
from visa_portal.database import unit_of_work
from visa_portal.models.activity_log import ActivityLog
from visa_portal.models.user import User
from visa_portal.services.file_storage import (
    FileStorage,
    format_file_size,
    generate_unique_filename,
    is_valid_size,
    is_valid_type,
)
from visa_portal.services.payment_gate import ensure_payment_complete
from visa_portal.utils.errors import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

UPLOAD_ACTION = "upload_appointment_slip"


@dataclass
class SlipFile:
    content: bytes | None
    content_type: str | None
    filename: str | None

    @property
    def size(self) -> int:
        return len(self.content or b"")


class UploadPipeline:
    def __init__(self, db: Session, storage: FileStorage, max_size: int | None = None):
        self.db = db
        self.storage = storage
        self.max_size = settings.MAX_UPLOAD_BYTES if max_size is None else max_size

    def _validate_file(self, slip: SlipFile | None) -> None:
        if slip is None or not slip.content:
            raise ValidationError("Appointment slip file is required")
        if not is_valid_type(slip.content_type):
            raise ValidationError("Invalid file type. Only PDF, JPEG, JPG, PNG, and GIF files are allowed.")
        if not is_valid_size(slip.size, self.max_size):
            raise ValidationError(
                f"File size too large. Maximum size is {self.max_size // (1024 * 1024)}MB."
            )

    def _load_user(self, user_id: int) -> User:
        # populate_existing: never trust a copy cached earlier in this session
        user = self.db.query(User).populate_existing().filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def _discard_previous(self, previous_path: str, user_id: int) -> None:
        try:
            self.storage.delete_file(previous_path)
        except Exception:
            logger.warning(
                "Could not delete superseded slip %s for user_id=%s; left as orphan",
                previous_path,
                user_id,
                exc_info=True,
            )

    def upload_appointment_slip(
        self,
        user_id: int,
        slip: SlipFile | None,
        notes: str = "",
        replace_existing: bool = False,
        admin_id: int | None = None,
    ) -> dict:
        self._validate_file(slip)
        user = self._load_user(user_id)
        ensure_payment_complete(user)

        previous_path = user.appointment_slip_path
        if previous_path and not replace_existing:
            raise ConflictError(
                "Appointment slip already exists. Set replaceExisting to true to replace it.",
                data={"existing_slip": True, "current_slip_path": previous_path},
            )

        prefix = "admin_upload" if admin_id is not None else "user_upload"
        filename = generate_unique_filename(slip.filename or "appointment-slip", user_id, prefix)
        try:
            new_path = self.storage.save_appointment_slip(slip.content, filename, slip.content_type)
        except Exception as exc:
            logger.error("Failed to store slip %s for user_id=%s", filename, user_id, exc_info=True)
            raise StorageError() from exc

        notes = (notes or "").strip()
        replaced_existing = bool(previous_path)
        try:
            with unit_of_work(self.db):
                user.appointment_slip_path = new_path
                user.updated_at = datetime.utcnow()
                self.db.add(
                    ActivityLog(
                        user_id=user_id,
                        admin_id=admin_id,
                        action=UPLOAD_ACTION,
                        details={
                            "filename": filename,
                            "original_name": slip.filename,
                            "file_size": slip.size,
                            "mimetype": slip.content_type,
                            "notes": notes,
                            "replaced_existing": replaced_existing,
                        },
                    )
                )
        except Exception as exc:
            logger.error(
                "Slip metadata transaction failed for user_id=%s; stored file %s is orphaned",
                user_id,
                new_path,
                exc_info=True,
            )
            raise PersistenceError() from exc

        self.db.refresh(user)
        if previous_path and previous_path != new_path:
            self._discard_previous(previous_path, user_id)

        logger.info(
            "Appointment slip uploaded for user_id=%s path=%s replaced=%s admin_id=%s",
            user_id,
            new_path,
            replaced_existing,
            admin_id,
        )
        return {
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "phone": user.phone,
                "appointment_slip_path": user.appointment_slip_path,
                "updated_at": user.updated_at,
            },
            "file": {
                "filename": filename,
                "original_name": slip.filename,
                "size": slip.size,
                "size_formatted": format_file_size(slip.size),
                "mimetype": slip.content_type,
                "upload_date": datetime.now(timezone.utc).isoformat(),
                "path": new_path,
            },
            "notes": notes,
            "replaced_existing": replaced_existing,
        }
