"""
Outgoing email for donor notifications.

Templates render to an ``OutgoingEmail``; a provider (SMTP or the Resend API,
chosen by ``PLEDGETRACK_EMAIL_PROVIDER``) delivers it. Delivery failures are
logged and reported as ``False`` so one bad address never aborts a batch.
"""

from __future__ import annotations

import hashlib
import ssl
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from email.message import EmailMessage
from typing import TYPE_CHECKING, Any

import aiosmtplib
import httpx
import structlog
from redis.exceptions import RedisError

from pledgetrack.config import get_settings
from pledgetrack.email.templates import campaign_ended

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()

RESEND_ENDPOINT = "https://api.resend.com/emails"

# name -> template(**context) returning (subject, html_body, text_body)
TEMPLATES: dict[str, Callable[..., tuple[str, str, str]]] = {
    "campaign_ended": campaign_ended,
}


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html_body: str
    text_body: str
    tag: str = "transactional"


class BaseEmailProvider(ABC):
    """Delivers rendered messages from one configured sender."""

    name = "base"

    def __init__(self, from_address: str, from_name: str) -> None:
        self.from_address = from_address
        self.from_name = from_name

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_address}>"

    @abstractmethod
    async def deliver(self, message: OutgoingEmail) -> None:
        """Hand the message to the transport; raise on failure."""

    async def send(self, message: OutgoingEmail) -> bool:
        """Deliver and report success instead of raising."""
        try:
            await self.deliver(message)
        except (aiosmtplib.SMTPException, httpx.HTTPError, OSError):
            logger.exception("email_send_failed", to=message.to, tag=message.tag, provider=self.name)
            return False
        logger.info("email_sent", to=message.to, tag=message.tag, provider=self.name)
        return True


class SMTPProvider(BaseEmailProvider):
    """SMTP with STARTTLS via aiosmtplib."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        super().__init__(from_address, from_name)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls

    def build(self, message: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.set_content(message.text_body)
        msg.add_alternative(message.html_body, subtype="html")
        return msg

    async def deliver(self, message: OutgoingEmail) -> None:
        await aiosmtplib.send(
            self.build(message),
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            start_tls=self.use_tls,
            tls_context=ssl.create_default_context() if self.use_tls else None,
        )


class ResendProvider(BaseEmailProvider):
    """Resend HTTP API."""

    name = "resend"

    def __init__(self, api_key: str, from_address: str, from_name: str, timeout: float = 10.0) -> None:
        super().__init__(from_address, from_name)
        self.api_key = api_key
        self.timeout = timeout

    async def deliver(self, message: OutgoingEmail) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                RESEND_ENDPOINT,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": self.sender,
                    "to": [message.to],
                    "subject": message.subject,
                    "html": message.html_body,
                    "text": message.text_body,
                    "tags": [{"name": "category", "value": message.tag}],
                },
            )
            response.raise_for_status()


def _create_provider() -> BaseEmailProvider:
    settings = get_settings()
    provider_name = settings.email_provider.lower()

    if provider_name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if provider_name == "resend":
        return ResendProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


def render(to: str, template_name: str, context: dict[str, Any]) -> OutgoingEmail:
    """Render a registered template for one recipient.

    Raises:
        ValueError: If the template name is unknown.
    """
    template = TEMPLATES.get(template_name)
    if template is None:
        msg = f"Unknown template: {template_name}"
        raise ValueError(msg)
    subject, html_body, text_body = template(**context)
    return OutgoingEmail(to=to, subject=subject, html_body=html_body, text_body=text_body, tag=template_name)


class EmailService:
    """Renders templates and sends them, throttled per recipient when Redis is available."""

    RATE_LIMIT_WINDOW = 3600
    # sent regardless of the per-recipient limit
    UNTHROTTLED_TAGS = frozenset({"campaign_ended"})

    def __init__(
        self,
        provider: BaseEmailProvider | None = None,
        redis: Redis | None = None,
        rate_limit_max: int | None = None,
    ) -> None:
        self.provider = provider or _create_provider()
        self._redis = redis
        self.rate_limit_max = rate_limit_max or get_settings().email_rate_limit_per_hour

    async def _within_rate_limit(self, address: str) -> bool:
        if self._redis is None:
            return True
        key = f"email_rate:{hashlib.sha256(address.lower().encode()).hexdigest()}"
        try:
            count = await self._redis.incr(key)
            if count == 1:
                await self._redis.expire(key, self.RATE_LIMIT_WINDOW)
        except RedisError:
            logger.warning("email_rate_limit_unavailable")
            return True
        return count <= self.rate_limit_max

    async def send(self, message: OutgoingEmail) -> bool:
        """Send one rendered message. False when throttled or delivery failed."""
        if message.tag not in self.UNTHROTTLED_TAGS and not await self._within_rate_limit(message.to):
            logger.warning("email_rate_limited", to=message.to, tag=message.tag)
            return False
        return await self.provider.send(message)

    async def send_template(self, to: str, template_name: str, context: dict[str, Any]) -> bool:
        """Render ``template_name`` with ``context`` and send it to ``to``."""
        return await self.send(render(to, template_name, context))


_email_service: EmailService | None = None


def get_email_service(redis: Redis | None = None) -> EmailService:
    """Get or create the email service singleton."""
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService(redis=redis)
    return _email_service


def reset_email_service() -> None:
    """Drop the singleton so the next call re-reads settings."""
    global _email_service  # noqa: PLW0603
    _email_service = None
