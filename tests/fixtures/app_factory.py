from types import SimpleNamespace
from typing import Any

from secretlink.config import Settings
from secretlink.domain.clock import ManualClock
from secretlink.infrastructure.auth.password_check import (
    MasterPasswordCheck,
    PasswordCredentialCheck,
)
from secretlink.infrastructure.email.mock import MockNotifier
from secretlink.infrastructure.stores.memory import InMemoryTokenStore
from secretlink.utils.password import hash_password
from secretlink.wiring import create_app

MASTER_PASSWORD = "open-sesame"


def create_test_app(
    store: Any = None,
    clock: Any = None,
    notifier: Any = None,
    settings: Settings | None = None,
    register_on_first_use: bool = True,
) -> SimpleNamespace:
    """Create an app with explicit test collaborators.

    Returns a lightweight object exposing the FastAPI app as ``.app`` plus the
    collaborators so tests can inspect them. Tests build an
    ``httpx.ASGITransport`` from ``client.app``.
    """
    settings = settings or Settings(
        token_store="memory",
        sweep_enabled=False,
        frontend_url="http://testserver",
        rate_limit_calls=1000,
    )
    store = store if store is not None else InMemoryTokenStore()
    clock = clock or ManualClock()
    notifier = notifier or MockNotifier()
    link_credentials = MasterPasswordCheck(hash_password(MASTER_PASSWORD))
    login_credentials = PasswordCredentialCheck(register_on_first_use=register_on_first_use)

    app = create_app(
        settings,
        store=store,
        clock=clock,
        notifier=notifier,
        link_credentials=link_credentials,
        login_credentials=login_credentials,
    )
    return SimpleNamespace(
        app=app,
        store=store,
        clock=clock,
        notifier=notifier,
        login_credentials=login_credentials,
    )
