import asyncio
from datetime import timedelta
from typing import Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from ...config import Settings
from ...domain.token import Token, TokenKind
from ...logging_config import get_logger
from ...utils.masking import fingerprint, mask_email

logger = get_logger(__name__)


def describe_lifetime(lifetime: timedelta) -> str:
    """Human wording for a token lifetime, e.g. ``10 minutes`` or ``1 minute 30 seconds``."""
    minutes, seconds = divmod(max(0, int(lifetime.total_seconds())), 60)
    parts = []
    if minutes:
        parts.append(f"{minutes} minute" + ("s" if minutes != 1 else ""))
    if seconds or not parts:
        parts.append(f"{seconds} second" + ("s" if seconds != 1 else ""))
    return " ".join(parts)


class SendGridNotifier:
    """Delivers verification codes and secret links by email through SendGrid."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        frontend_url: Optional[str] = None,
    ):
        s = Settings()
        self.api_key = api_key or s.sendgrid_api_key
        self.from_email = from_email or s.email_from
        self.frontend_url = (frontend_url or s.frontend_url).rstrip("/")

    async def _send(self, to_email: str, subject: str, html_content: str) -> None:
        # SendGrid client is synchronous; run it in a thread to avoid blocking the event loop
        client = SendGridAPIClient(self.api_key)
        message = Mail(
            from_email=self.from_email,
            to_emails=to_email,
            subject=subject,
            html_content=html_content,
        )
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, client.send, message)

    def render(self, token: Token) -> tuple[str, str]:
        if token.kind is TokenKind.CODE:
            subject = "Email verification code"
            lifetime = describe_lifetime(token.expires_at - token.created_at)
            html = (
                "<p>Enter this code to complete your login:</p>"
                f"<p><strong>{token.id}</strong></p>"
                f"<p>This code will expire in {lifetime}. "
                "If you didn't request this code, please ignore this email.</p>"
            )
        else:
            url = f"{self.frontend_url}/secret/{token.id}"
            subject = "Your secret link"
            html = (
                f'<p>Your secret link: <a href="{url}">{url}</a></p>'
                "<p>This link will expire automatically. Do not share it with anyone.</p>"
            )
        return subject, html

    async def notify(self, subject: str, token: Token) -> bool:
        mail_subject, html = self.render(token)
        try:
            await self._send(subject, mail_subject, html)
        except (HTTPError, OSError) as e:
            logger.error(
                "token_email_failed",
                to=mask_email(subject),
                token=fingerprint(token.id),
                error=str(e),
            )
            return False
        return True
