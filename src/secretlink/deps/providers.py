"""Providers for application-wide services and clients.

Everything is read from ``request.app.state``, populated either by
``wiring.create_app`` (tests, embedded use) or by ``composition.wire_app``
at startup.
"""

from typing import Any, Optional

from fastapi import Depends, Header, HTTPException, Request

from ..config import Settings
from ..ports.credentials import CredentialCheck
from ..ports.notifier import Notifier
from ..services.token_service import TokenService

LINK_GENERATOR_SUBJECT = "link-generator"

_settings: Settings | None = None


def get_settings(request: Request = None) -> Settings:  # type: ignore[assignment]
    """Prefer the app's settings; fall back to a lazily created singleton."""
    if request is not None:
        s = getattr(request.app.state, "settings", None)
        if s is not None:
            return s
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def _state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail="token service unavailable")
    return value


def get_token_service(request: Request) -> TokenService:
    return _state(request, "token_service")


def get_notifier(request: Request) -> Notifier:
    return _state(request, "notifier")


def get_link_credentials(request: Request) -> CredentialCheck:
    return _state(request, "link_credentials")


def get_login_credentials(request: Request) -> CredentialCheck:
    return _state(request, "login_credentials")


def get_rate_limit_cache(request: Request) -> Any:
    return _state(request, "rate_limit_cache")


async def require_master_password(
    x_master_password: Optional[str] = Header(default=None),
    credentials: CredentialCheck = Depends(get_link_credentials),
) -> None:
    """Gate generator-only endpoints behind the master password header."""
    if not x_master_password or not await credentials.check(
        LINK_GENERATOR_SUBJECT, x_master_password
    ):
        raise HTTPException(status_code=401, detail="Invalid master password")
