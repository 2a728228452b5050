from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from visa_portal.config import settings
from visa_portal.database import get_db
from visa_portal.models.user import User
from visa_portal.services.auth_middleware import get_current_user
from visa_portal.services.file_storage import FileStorage, get_file_storage
from visa_portal.services.upload_service import SlipFile, UploadPipeline
from visa_portal.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/upload", tags=["Uploads"])


async def read_slip(upload: UploadFile | None) -> SlipFile | None:
    """Buffer at most one byte past the limit so oversize files are still rejected."""
    if upload is None:
        return None
    content = await upload.read(settings.MAX_UPLOAD_BYTES + 1)
    return SlipFile(content=content, content_type=upload.content_type, filename=upload.filename)


@router.post("/appointment-slip")
async def upload_appointment_slip(
    appointment_slip: UploadFile | None = File(None, alias="appointmentSlip"),
    notes: str = Form(""),
    replace_existing: bool = Form(False, alias="replaceExisting"),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
    current_user: User = Depends(get_current_user),
):
    try:
        slip = await read_slip(appointment_slip)
        result = await run_in_threadpool(
            UploadPipeline(db, storage).upload_appointment_slip,
            current_user.id,
            slip,
            notes=notes,
            replace_existing=replace_existing,
        )
        message = (
            "Appointment slip replaced successfully"
            if result["replaced_existing"]
            else "Appointment slip uploaded successfully"
        )
        return create_response(message=message, data=result, status_code=status.HTTP_200_OK)
    except Exception as exc:
        return handle_exception(exc)
