"""Schema exports for API request/response models."""

from .links import (
    DEFAULT_LINK_SUBJECT,
    LinkCreateRequest,
    LinkListResponse,
    LinkResponse,
    SweepResponse,
    link_to_response,
)
from .verification import (
    SendVerificationRequest,
    SendVerificationResponse,
    VerifyLoginRequest,
    VerifyLoginResponse,
)

__all__ = [
    "DEFAULT_LINK_SUBJECT",
    "LinkCreateRequest",
    "LinkListResponse",
    "LinkResponse",
    "SweepResponse",
    "link_to_response",
    "SendVerificationRequest",
    "SendVerificationResponse",
    "VerifyLoginRequest",
    "VerifyLoginResponse",
]
