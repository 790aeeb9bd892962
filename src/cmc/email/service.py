"""
Outbound email.

A provider delivers one rendered message; ``EmailService`` renders named
templates, throttles per recipient when Redis is available and turns delivery
failures into a ``False`` result so callers never fail a request over email.
Providers: ``smtp`` (aiosmtplib), ``resend`` (HTTP API via httpx) and
``console`` (log only, for development and tests).
"""

from __future__ import annotations

import hashlib
import ssl
from collections.abc import Callable
from email.message import EmailMessage
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol

import aiosmtplib
import httpx
import structlog
from fastapi import Request

from cmc.email import templates

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from cmc.config import Settings

logger = structlog.get_logger()

RESEND_API_URL = "https://api.resend.com/emails"

# Errors a provider may raise for a message that could not be delivered
DELIVERY_ERRORS: tuple[type[BaseException], ...] = (aiosmtplib.SMTPException, httpx.HTTPError, OSError)


class RenderedEmail(NamedTuple):
    subject: str
    html: str
    text: str


TEMPLATES: dict[str, Callable[..., tuple[str, str, str]]] = {
    "welcome": templates.welcome_email,
    "password_reset_otp": templates.password_reset_otp,
    "password_reset_confirmation": templates.password_reset_confirmation,
}


class EmailProvider(Protocol):
    name: str

    async def send(self, to_email: str, message: RenderedEmail) -> None: ...


class SMTPProvider:
    """Deliver through an SMTP relay with STARTTLS."""

    name = "smtp"

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username or None
        self.password = settings.smtp_password or None
        self.use_tls = settings.smtp_use_tls
        self.sender = f"{settings.email_from_name} <{settings.email_from_address}>"

    def build(self, to_email: str, message: RenderedEmail) -> EmailMessage:
        """Multipart/alternative message: plain text first, HTML preferred."""
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to_email
        msg["Subject"] = message.subject
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")
        return msg

    async def send(self, to_email: str, message: RenderedEmail) -> None:
        await aiosmtplib.send(
            self.build(to_email, message),
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.use_tls,
            tls_context=ssl.create_default_context() if self.use_tls else None,
        )


class ResendProvider:
    """Deliver through the Resend HTTP API."""

    name = "resend"

    def __init__(self, settings: Settings) -> None:
        self.api_key = settings.resend_api_key
        self.sender = f"{settings.email_from_name} <{settings.email_from_address}>"

    async def send(self, to_email: str, message: RenderedEmail) -> None:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": self.sender,
                    "to": [to_email],
                    "subject": message.subject,
                    "html": message.html,
                    "text": message.text,
                },
            )
            response.raise_for_status()


class ConsoleProvider:
    """Log instead of sending. Bodies stay out of the log since they carry codes."""

    name = "console"

    async def send(self, to_email: str, message: RenderedEmail) -> None:
        logger.info("email_logged", to=to_email, subject=message.subject, size=len(message.text))


_PROVIDERS: dict[str, Callable[[Settings], EmailProvider]] = {
    "smtp": SMTPProvider,
    "resend": ResendProvider,
    "console": lambda _settings: ConsoleProvider(),
}


def create_provider(settings: Settings) -> EmailProvider:
    """
    Build the provider named by ``settings.email_provider``.

    Raises:
        ValueError: For an unknown provider name.
    """
    name = settings.email_provider.lower()
    factory = _PROVIDERS.get(name)
    if factory is None:
        msg = f"Unsupported email provider: {name}"
        raise ValueError(msg)
    return factory(settings)


def render(template_name: str, context: dict[str, Any]) -> RenderedEmail:
    """
    Render a registered template.

    Raises:
        ValueError: If the template name is unknown.
    """
    template = TEMPLATES.get(template_name)
    if template is None:
        msg = f"Unknown template: {template_name}"
        raise ValueError(msg)
    return RenderedEmail(*template(**context))


class EmailService:
    """Template rendering, per-recipient throttling and failure isolation."""

    RATE_LIMIT_MAX = 5
    RATE_LIMIT_WINDOW = 3600

    def __init__(self, provider: EmailProvider, redis: Redis | None = None) -> None:
        self.provider = provider
        self._redis = redis

    @staticmethod
    def _recipient_key(email: str) -> str:
        # Hashed so addresses never appear in Redis keys
        return f"email_rate:{hashlib.sha256(email.lower().encode()).hexdigest()}"

    async def _within_rate_limit(self, email: str) -> bool:
        if self._redis is None:
            return True
        key = self._recipient_key(email)
        count = await self._redis.incr(key)
        if count == 1:
            await self._redis.expire(key, self.RATE_LIMIT_WINDOW)
        return count <= self.RATE_LIMIT_MAX

    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        """
        Deliver one message.

        Returns False when the recipient is throttled or delivery failed.
        """
        if not await self._within_rate_limit(to):
            logger.warning("email_rate_limited", subject=subject)
            return False
        try:
            await self.provider.send(to, RenderedEmail(subject, html_body, text_body))
        except DELIVERY_ERRORS:
            logger.exception("email_send_failed", provider=self.provider.name, subject=subject)
            return False
        logger.info("email_sent", provider=self.provider.name, subject=subject)
        return True

    async def send_template(self, to: str, template_name: str, context: dict[str, Any]) -> bool:
        """
        Render ``template_name`` with ``context`` and deliver it.

        Raises:
            ValueError: If the template name is unknown.
        """
        message = render(template_name, context)
        return await self.send_email(to, message.subject, message.html, message.text)


def get_email_service(request: Request) -> EmailService:
    """Return the process-wide EmailService from application state (FastAPI dependency)."""
    service: EmailService | None = getattr(request.app.state, "email_service", None)
    if service is None:
        msg = "Email service not initialized. Call init_resources() first."
        raise RuntimeError(msg)
    return service
