from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .config import Settings
from .exceptions import DeliveryError, InvalidTokenRequest, StorageError
from .logging_config import get_logger

logger = get_logger(__name__)


def _default_notifier(settings: Settings) -> Any:
    if settings.sendgrid_api_key:
        from .infrastructure.email.sendgrid import SendGridNotifier

        return SendGridNotifier(
            api_key=settings.sendgrid_api_key,
            from_email=settings.email_from,
            frontend_url=settings.frontend_url,
        )
    from .infrastructure.email.mock import MockNotifier

    return MockNotifier()


def _default_rate_limit_cache(settings: Settings) -> Any:
    from .infrastructure.cache.rate_limit import InMemoryRateLimitCache, RedisRateLimitCache

    if settings.redis_url:
        return RedisRateLimitCache.from_url(
            settings.redis_url, timeout_seconds=settings.store_timeout_seconds
        )
    return InMemoryRateLimitCache()


def attach_services(
    app: FastAPI,
    store: Any,
    settings: Settings,
    clock: Any = None,
    notifier: Any = None,
    link_credentials: Any = None,
    login_credentials: Any = None,
    rate_limit_cache: Any = None,
) -> None:
    """Build the token service around ``store`` and publish it on ``app.state``."""
    from .infrastructure.auth.password_check import MasterPasswordCheck, PasswordCredentialCheck
    from .services.token_service import TokenService

    app.state.token_store = store
    app.state.token_service = TokenService.from_settings(store, settings, clock=clock)
    app.state.notifier = notifier or _default_notifier(settings)
    app.state.link_credentials = link_credentials or MasterPasswordCheck(
        settings.link_master_password_hash
    )
    app.state.login_credentials = login_credentials or PasswordCredentialCheck(
        register_on_first_use=settings.register_on_first_use
    )
    app.state.rate_limit_cache = rate_limit_cache or _default_rate_limit_cache(settings)


def create_app(
    settings: Settings | None = None,
    store: Any = None,
    clock: Any = None,
    notifier: Any = None,
    link_credentials: Any = None,
    login_credentials: Any = None,
    rate_limit_cache: Any = None,
) -> FastAPI:
    """Create a fully routed app without running startup wiring.

    When ``store`` is given the token service is attached immediately, which
    is what tests use. Otherwise ``composition.wire_app`` builds the store
    from settings at startup.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(title="Secret Links")
    app.state.settings = settings
    app.state.token_service = None
    if store is not None:
        attach_services(
            app,
            store,
            settings,
            clock=clock,
            notifier=notifier,
            link_credentials=link_credentials,
            login_credentials=login_credentials,
            rate_limit_cache=rate_limit_cache,
        )

    from .metrics import metrics_response
    from .middleware.metrics_middleware import MetricsMiddleware
    from .routers import health, links, verification

    app.include_router(health.router)
    app.include_router(links.router)
    app.include_router(verification.router)

    app.add_middleware(MetricsMiddleware)

    @app.get("/metrics")
    async def _metrics():
        data, content_type = metrics_response()
        return Response(content=data, media_type=content_type)

    @app.exception_handler(StorageError)
    async def _storage_error_handler(request: Request, exc: StorageError):
        logger.error("storage_unavailable", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=503, content={"detail": "token store unavailable"})

    @app.exception_handler(InvalidTokenRequest)
    async def _invalid_request_handler(request: Request, exc: InvalidTokenRequest):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(DeliveryError)
    async def _delivery_error_handler(request: Request, exc: DeliveryError):
        return JSONResponse(status_code=502, content={"detail": "failed to deliver token"})

    return app


__all__ = ["create_app", "attach_services"]
