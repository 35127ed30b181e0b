"""Routers package public exports."""

__all__ = [
    "health",
    "links",
    "verification",
]
