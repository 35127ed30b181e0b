from typing import Protocol


class CredentialCheck(Protocol):
    """Protocol for verifying a subject's secret before a token is issued."""

    async def check(self, subject: str, secret: str) -> bool: ...
