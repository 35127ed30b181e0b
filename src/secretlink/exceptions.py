"""Exceptions raised by the token core.

Expected outcomes (not found, expired, already consumed) are returned as
values, see :mod:`secretlink.domain.token`. Only infrastructure faults and
caller mistakes are raised.
"""


class SecretLinkError(Exception):
    """Base class for all errors raised by this package."""


class StorageError(SecretLinkError):
    """The token store is unavailable or failed to complete an operation."""


class InvalidTokenRequest(SecretLinkError, ValueError):
    """Issuance was requested with an empty subject or a non-positive ttl."""


class DeliveryError(SecretLinkError):
    """A freshly issued token could not be delivered and was revoked."""

    def __init__(self, subject: str, message: str = "token delivery failed"):
        super().__init__(message)
        self.subject = subject


__all__ = ["SecretLinkError", "StorageError", "InvalidTokenRequest", "DeliveryError"]
