from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roombook.api.routes import (
    academic_periods,
    activity,
    auth,
    cleaning_reports,
    courses,
    faculties,
    health,
    notifications,
    reservations,
    rooms,
    users,
)
from roombook.core.config import get_settings
from roombook.core.exceptions import AppError
from roombook.core.logging import configure_logging
from roombook.db.bootstrap import ensure_runtime_schema

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    ensure_runtime_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(users.router, prefix=settings.api_prefix, tags=["users"])
app.include_router(faculties.router, prefix=f"{settings.api_prefix}/faculties", tags=["faculties"])
app.include_router(rooms.router, prefix=f"{settings.api_prefix}/rooms", tags=["rooms"])
app.include_router(courses.router, prefix=f"{settings.api_prefix}/courses", tags=["courses"])
app.include_router(
    academic_periods.router,
    prefix=f"{settings.api_prefix}/academic-periods",
    tags=["academic-periods"],
)
app.include_router(reservations.router, prefix=f"{settings.api_prefix}/reservations", tags=["reservations"])
app.include_router(
    cleaning_reports.router,
    prefix=f"{settings.api_prefix}/cleaning-reports",
    tags=["cleaning-reports"],
)
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
