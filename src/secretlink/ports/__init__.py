"""Ports package - defines interfaces for external dependencies.

Exports the store protocol and the collaborator contracts used by the token
services for dependency inversion.
"""

from .clock import Clock
from .credentials import CredentialCheck
from .notifier import Notifier
from .token_store import TokenStore

__all__ = [
    "Clock",
    "CredentialCheck",
    "Notifier",
    "TokenStore",
]
