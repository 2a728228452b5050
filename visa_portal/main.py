import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from seed import run_seed
from visa_portal.config import settings
from visa_portal.database import Database
from visa_portal.routers import admin, appointments, auth, health, payment, uploads, user
from visa_portal.services.file_storage import FileStorage, build_file_storage
from visa_portal.utils.logging_config import configure_logging
from visa_portal.utils.response import create_response, error_response, handle_exception

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "form"))
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def create_app(database: Database | None = None, storage: FileStorage | None = None) -> FastAPI:
    configure_logging(settings)

    app = FastAPI(title=settings.PROJECT_NAME)
    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.storage = storage or build_file_storage(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Errors raised inside dependencies never reach the handlers' try blocks
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return handle_exception(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(
            _validation_message(exc),
            status.HTTP_400_BAD_REQUEST,
            data={
                "errors": [
                    {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
                    for error in exc.errors()
                ]
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return handle_exception(exc)

    @app.on_event("startup")
    def startup_event():
        app.state.database.create_all()
        run_seed(app.state.database)
        logger.info("%s started (env=%s)", settings.PROJECT_NAME, settings.APP_ENV)

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.database.dispose()

    app.include_router(auth.router)
    app.include_router(appointments.router)
    app.include_router(payment.router)
    app.include_router(uploads.router)
    app.include_router(user.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    @app.get("/")
    def home():
        try:
            return create_response(
                message="Medical Visa Portal API running",
                data={"service": "visa-portal-backend"},
                status_code=status.HTTP_200_OK,
            )
        except Exception as exc:
            return handle_exception(exc)

    return app


app = create_app()
