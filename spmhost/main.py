from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from spmhost.artifacts.cleaner import EvictionScheduler
from spmhost.artifacts.router import router as artifacts_router
from spmhost.core.config import Settings, get_settings
from spmhost.core.limiter import configure_upload_rate_limit, limiter
from spmhost.core.middleware import RequestContextMiddleware
from spmhost.core.tls import load_tls


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    # ---------------------------------------------------------------------------
    # Logging: configure structlog before anything logs
    # ---------------------------------------------------------------------------
    from spmhost.core.logging import configure_structlog

    configure_structlog(debug=settings.debug)

    scheduler = EvictionScheduler()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        # Let in-flight eviction passes finish before the process exits.
        scheduler.shutdown()

    _app = FastAPI(
        title="spmhost",
        description="Artifact host for Swift Package Manager binary targets",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ---------------------------------------------------------------------------
    # Process-wide state, fixed for the lifetime of the app
    # ---------------------------------------------------------------------------
    _app.state.settings = settings
    _app.state.storage_config = settings.storage_config()
    _app.state.max_upload_bytes = settings.max_upload_bytes()
    _app.state.eviction_scheduler = scheduler
    _app.state.tls = load_tls(settings.cert_path, settings.key_path)
    _app.state.tls_enabled = _app.state.tls is not None

    # ---------------------------------------------------------------------------
    # Rate limiter state: SlowAPI reads limiter from app.state
    # ---------------------------------------------------------------------------
    _app.state.limiter = limiter
    configure_upload_rate_limit(settings.upload_rate_limit)
    _app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # ---------------------------------------------------------------------------
    # Middleware (registered outermost → innermost; executed innermost → outermost)
    # ---------------------------------------------------------------------------
    _app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    _app.add_middleware(RequestContextMiddleware)

    # ---------------------------------------------------------------------------
    # Sentry: initialised here so it captures startup errors too
    # ---------------------------------------------------------------------------
    from spmhost.core.sentry import init_sentry

    init_sentry(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
    )

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------

    @_app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    @_app.get("/hello", response_class=PlainTextResponse)
    async def hello() -> str:
        return "Hello, world!"

    @_app.get("/cert")
    async def certificate(request: Request) -> FileResponse:
        """Serve the TLS certificate so clients can trust a self-signed host."""
        tls = request.app.state.tls
        if tls is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Certificate not configured or available",
            )
        return FileResponse(tls.cert_path, media_type="application/x-pem-file")

    _app.include_router(artifacts_router)

    return _app
