import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from drivingschool.api.auth.router import router as auth_router
from drivingschool.api.class_types.router import router as class_types_router
from drivingschool.api.coach_salary.router import router as coach_salary_router
from drivingschool.api.coaches.router import router as coaches_router
from drivingschool.api.exam_registrations.router import router as exam_registrations_router
from drivingschool.api.exam_schedules.router import router as exam_schedules_router
from drivingschool.api.exam_venues.router import router as exam_venues_router
from drivingschool.api.exam_warnings.router import router as exam_warnings_router
from drivingschool.api.payments.router import router as payments_router
from drivingschool.api.salary_config.router import router as salary_config_router
from drivingschool.api.student_progress.router import router as student_progress_router
from drivingschool.api.students.router import router as students_router
from drivingschool.core.config import Settings, get_settings
from drivingschool.core.logging import configure_logging, log_requests
from drivingschool.db.session import build_engine, build_sessionmaker

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message}, headers=headers)


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "请求参数不正确"
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
            message = str(first.get("msg", message)).removeprefix("Value error, ")
            if field:
                message = f"{field}: {message}"
        return _error(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = "服务器内部错误" if settings.is_production else f"服务器错误: {exc}"
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.engine.dispose()

    app = FastAPI(title="Driving School Back Office", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.sessionmaker = build_sessionmaker(app.state.engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
    _register_exception_handlers(app, settings)

    # Routers
    app.include_router(auth_router)
    app.include_router(class_types_router)
    app.include_router(students_router)
    app.include_router(payments_router)
    app.include_router(exam_venues_router)
    app.include_router(exam_schedules_router)
    app.include_router(exam_registrations_router)
    app.include_router(student_progress_router)
    app.include_router(exam_warnings_router)
    app.include_router(coaches_router)
    app.include_router(salary_config_router)
    app.include_router(coach_salary_router)

    logger.info("Application created (%s)", settings.environment)
    return app


app = create_app()
