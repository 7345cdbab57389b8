import logging

import churchcms.models  # noqa: F401
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from churchcms.core.config import settings
from churchcms.core.db import session_scope
from churchcms.routers import account as account_router
from churchcms.routers import attendance as attendance_router
from churchcms.routers import auth as auth_router
from churchcms.routers import hierarchy as hierarchy_router
from churchcms.routers import members as members_router
from churchcms.routers import services as services_router
from churchcms.routers import structure as structure_router
from churchcms.routers import users as users_router
from churchcms.scripts.seed_demo import seed_demo

logging.basicConfig(level=settings.LOG_LEVEL.upper())

app = FastAPI(title="Church CMS API", version="0.1.0")

logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router, prefix=settings.API_PREFIX)
app.include_router(account_router.router, prefix=settings.API_PREFIX)
app.include_router(users_router.router, prefix=settings.API_PREFIX)
app.include_router(hierarchy_router.router, prefix=settings.API_PREFIX)
app.include_router(structure_router.router, prefix=settings.API_PREFIX)
app.include_router(members_router.router, prefix=settings.API_PREFIX)
app.include_router(services_router.router, prefix=settings.API_PREFIX)
app.include_router(attendance_router.router, prefix=settings.API_PREFIX)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("integrity_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "The request conflicts with existing data"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An internal server error occurred"},
    )


@app.on_event("startup")
def seed_demo_data() -> None:
    if not settings.SEED_DEMO_DATA:
        return
    with session_scope() as session:
        seed_demo(session)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}
