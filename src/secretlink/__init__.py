"""Short-lived secret links and single-use verification codes."""

__all__ = [
    "domain",
    "infrastructure",
    "middleware",
    "ports",
    "routers",
    "schemas",
    "services",
]
