import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from appbase_backend.api.auth import auth_router
from appbase_backend.api.exceptions import InternalServerException, auth_error_to_http_exception
from appbase_backend.api.permissions import permissions_router
from appbase_backend.api.roles import roles_router
from appbase_backend.api.sessions import sessions_router
from appbase_backend.api.user_roles import user_roles_router
from appbase_backend.database import get_db, get_engine
from appbase_backend.errors import AuthError, StoreError
from appbase_backend.model import Base
from appbase_backend.notifications import init_email_service
from appbase_backend.permissions.catalog import bootstrap_admin_user, ensure_admin_role, sync_permission_catalog
from appbase_backend.settings import settings
from appbase_backend.utils import configure_logging

logger = logging.getLogger(__name__)

async def startup_logic():

    Base.metadata.create_all(bind=get_engine())

    db = next(get_db())
    try:
        sync_permission_catalog(db)
        ensure_admin_role(db)
        bootstrap_admin_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    finally:
        db.close()

@asynccontextmanager
async def lifespan(app: FastAPI):

    configure_logging(settings.LOG_LEVEL)
    init_email_service()

    if settings.DEBUG_MODE == "production":
        await startup_logic()

    yield

app = FastAPI(lifespan=lifespan)

origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    if isinstance(exc, StoreError):
        logger.error(f"Store error on {request.method} {request.url.path}", exc_info=exc)
    return await http_exception_handler(request, auth_error_to_http_exception(exc))

@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled database error on {request.method} {request.url.path}", exc_info=exc)
    return await http_exception_handler(request, InternalServerException())

app.include_router(
    auth_router,
    prefix="/auth",
    tags=["auth"]
)

app.include_router(
    sessions_router,
    prefix="/sessions",
    tags=["auth", "sessions"]
)

app.include_router(
    roles_router,
    prefix="/roles",
    tags=["roles"]
)

app.include_router(
    user_roles_router,
    prefix="/user-roles",
    tags=["user", "roles"]
)

app.include_router(
    permissions_router,
    prefix="/permissions",
    tags=["permissions"]
)

@app.head("/", status_code=204)
def get_status_head():
    return
