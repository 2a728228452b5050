import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from visa_portal.database import get_db
from visa_portal.models.admin import Admin
from visa_portal.routers.uploads import read_slip
from visa_portal.schemas.admin import PaymentStatusEnum
from visa_portal.schemas.user import UserResponse
from visa_portal.services.auth_middleware import get_current_admin
from visa_portal.services.file_storage import FileStorage, get_file_storage
from visa_portal.services.principal_repository import PrincipalRepository
from visa_portal.services.upload_service import UploadPipeline
from visa_portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    payment_status: PaymentStatusEnum | None = Query(None),
    search: str | None = Query(None, max_length=100),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    try:
        result = PrincipalRepository(db).list_users(
            page=page,
            limit=limit,
            payment_status=payment_status.value if payment_status else None,
            search=search,
        )
        return create_response(
            message="Users fetched",
            data={
                "users": [UserResponse.model_validate(user).model_dump() for user in result["users"]],
                "pagination": result["pagination"],
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/upload-slip")
async def upload_slip_for_user(
    user_id: int = Form(..., gt=0, alias="userId"),
    appointment_slip: UploadFile | None = File(None, alias="appointmentSlip"),
    notes: str = Form(""),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
    current_admin: Admin = Depends(get_current_admin),
):
    try:
        slip = await read_slip(appointment_slip)
        result = await run_in_threadpool(
            UploadPipeline(db, storage).upload_appointment_slip,
            user_id,
            slip,
            notes=notes,
            replace_existing=True,
            admin_id=current_admin.id,
        )
        logger.info("Admin %s uploaded a slip for user_id=%s", current_admin.username, user_id)
        return create_response(message="Appointment slip uploaded successfully", data=result)
    except Exception as exc:
        return handle_exception(exc)
