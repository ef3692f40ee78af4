import logging

from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from digital_house.config import settings
from digital_house.database import Base, engine
from digital_house.models import (  # noqa: F401  (register tables on Base.metadata)
    admin_verification,
    media,
    notification,
    options,
    otp,
    post,
    user,
    user_profile,
)
from digital_house.routers import admin, auth, home, landing, posts, profile
from digital_house.routers import media as media_router
from digital_house.routers import options as options_router
from digital_house.state import AppLifecycle
from digital_house.utils.db_migrations import run_migrations
from digital_house.utils.errors import ServiceError
from digital_house.utils.response import (
    create_response,
    error_response,
    service_exception_handler,
    validation_exception_handler,
)
from seed import run_seed

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("digital_house")

ALWAYS_AVAILABLE_PATHS = {"/", "/health"}

app = FastAPI(title=settings.PROJECT_NAME)
app.state.lifecycle = AppLifecycle()

app.add_exception_handler(ServiceError, service_exception_handler)
app.add_exception_handler(StarletteHTTPException, service_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.middleware("http")
async def require_database(request: Request, call_next):
    lifecycle = request.app.state.lifecycle
    if lifecycle.ready or request.url.path in ALWAYS_AVAILABLE_PATHS:
        return await call_next(request)
    return error_response(lifecycle.unavailable_message(), status.HTTP_503_SERVICE_UNAVAILABLE)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.debug("%s %s", request.method, request.url.path)
    return await call_next(request)


# CORS for the mobile app and admin panel
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def init_db():
    Base.metadata.create_all(bind=engine)
    run_migrations(engine)
    run_seed()


@app.on_event("startup")
async def startup_event():
    lifecycle = app.state.lifecycle
    try:
        await run_in_threadpool(init_db)
    except Exception as exc:
        lifecycle.mark_failed(exc)
    else:
        lifecycle.mark_ready()

    if not settings.ADMIN_API_KEY:
        logger.warning("ADMIN_API_KEY is not set; admin API key auth will return 500.")


app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(posts.router)
app.include_router(home.router)
app.include_router(media_router.router)
app.include_router(options_router.router)
app.include_router(landing.router)
app.include_router(admin.router)


@app.get("/")
def root():
    return create_response(data={"message": "Digital House API running", "service": "digital-house"})


@app.get("/health")
def health(request: Request):
    lifecycle = request.app.state.lifecycle
    return create_response(data={"status": "ok", "database": lifecycle.phase.value.lower()})
