from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Protocol for the current-time source (timezone-aware UTC)."""

    def now(self) -> datetime: ...
