"""
FastAPI application entry point for the auth proxy.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from authproxy.config import Settings, get_settings
from authproxy.dependencies import build_contact_client
from authproxy.errors import register_error_handlers
from authproxy.routes import router
from authproxy.schemas import HealthResponse


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(title="Research Auth Proxy", version="0.1.0")
    if settings is None:
        settings = get_settings()
    else:
        app.dependency_overrides[get_settings] = lambda: settings
    app.state.contact_client = build_contact_client(settings)

    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=settings.environment,
        )

    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
