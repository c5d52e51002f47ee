"""Invite email dispatch over a Resend-compatible HTTP API.

Sending is best-effort: when the API key or sender is not configured, or the
call fails, the caller gets ``EmailOutcome(sent=False)`` and falls back to
sharing the invite link by hand. Nothing here raises.
"""

import html
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

INVITE_SUBJECT = "Trackly Home invite"


@dataclass(frozen=True)
class EmailOutcome:
    sent: bool
    reason: Optional[str] = None

    @classmethod
    def delivered(cls) -> "EmailOutcome":
        return cls(sent=True)

    @classmethod
    def not_sent(cls, reason: str) -> "EmailOutcome":
        return cls(sent=False, reason=reason)


class InviteMailer:
    """Sends invitation emails. The invite URL is never logged."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "InviteMailer":
        return cls(
            api_key=settings.RESEND_API_KEY,
            sender=settings.RESEND_FROM,
            api_url=settings.RESEND_API_URL,
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.sender)

    async def send_invite(self, to_email: str, invite_url: str) -> EmailOutcome:
        if not self.is_configured:
            return EmailOutcome.not_sent("not_configured")

        body = (
            "<p>You've been invited to join a Trackly Home household.</p>\n"
            f'<p><a href="{html.escape(invite_url, quote=True)}">Click here to join</a></p>'
        )
        payload = {
            "from": self.sender,
            "to": [to_email],
            "subject": INVITE_SUBJECT,
            "html": body,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as ex:
            logger.warning("Invite email dispatch failed (%s)", type(ex).__name__)
            return EmailOutcome.not_sent("transport_error")

        if not response.is_success:
            logger.warning("Invite email rejected by provider (status %s)", response.status_code)
            return EmailOutcome.not_sent(f"http_{response.status_code}")

        return EmailOutcome.delivered()
