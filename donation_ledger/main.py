import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from donation_ledger import __version__
from donation_ledger.core.config import Settings, get_settings
from donation_ledger.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from donation_ledger.core.logging import bind_request_context, configure_logging, get_logger
from donation_ledger.deps import USER_ID_HEADER
from donation_ledger.routers import admin, credits, donations, listings, notifications, stream

log = get_logger(__name__)

ROUTERS = (
    (donations.router, "donations"),
    (listings.router, "listings"),
    (credits.router, "credits"),
    (notifications.router, "notifications"),
    (admin.router, "admin"),
    (stream.router, "stream"),
)


def _init_sentry(settings: Settings) -> None:
    import sentry_sdk

    sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
    log.info("sentry_enabled", env=settings.env)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.sentry_dsn:
        _init_sentry(settings)
    log.info("startup", env=settings.env, version=__version__)
    yield
    log.info("shutdown")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(debug=settings.debug)

    app = FastAPI(
        title="Donation Ledger API",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        bind_request_context(request_id, request.headers.get(USER_ID_HEADER))
        started = time.perf_counter()
        response = await call_next(request)
        log.info(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    for router, name in ROUTERS:
        app.include_router(router, prefix=f"/v1/{name}", tags=[name])

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"status": "ok"}

    return app


app = create_app()
