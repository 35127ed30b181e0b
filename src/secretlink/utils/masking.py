"""Helpers for keeping secrets out of responses and logs."""


def mask_email(email: str) -> str:
    """Hide the middle of the local part: ``alice@example.com`` -> ``a***e@example.com``."""
    if "@" not in email:
        return "*" * len(email)
    username, domain = email.split("@", 1)
    if len(username) <= 2:
        return f"{username[:1]}*@{domain}"
    return f"{username[0]}{'*' * (len(username) - 2)}{username[-1]}@{domain}"


def fingerprint(token_id: str) -> str:
    """Short prefix of a token id, safe to log."""
    return f"{token_id[:6]}…" if len(token_id) > 6 else "…"
