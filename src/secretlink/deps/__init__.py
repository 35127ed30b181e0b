"""Dependency injection for FastAPI."""

from .providers import (
    LINK_GENERATOR_SUBJECT,
    get_link_credentials,
    get_login_credentials,
    get_notifier,
    get_rate_limit_cache,
    get_settings,
    get_token_service,
    require_master_password,
)
from .rate_limit import require_rate_limit

__all__ = [
    "LINK_GENERATOR_SUBJECT",
    "get_settings",
    "get_token_service",
    "get_notifier",
    "get_link_credentials",
    "get_login_credentials",
    "get_rate_limit_cache",
    "require_master_password",
    "require_rate_limit",
]
