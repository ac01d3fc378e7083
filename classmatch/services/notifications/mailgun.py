from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from ...config import Settings
from ...core.errors import DependencyError
from .base import BaseNotifier, DeliveryStatus, NotificationOutcome, Recipient
from .templates import render

logger = logging.getLogger(__name__)


class MailgunNotifier(BaseNotifier):
    """Sends plain-text email through the Mailgun messages API."""

    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        super().__init__(settings)
        self._client = client

    @property
    def messages_url(self) -> str:
        base_url = self.settings.mailgun_base_url.rstrip("/")
        return f"{base_url}/{self.settings.mailgun_domain}/messages"

    def _post(self, data: dict[str, str]) -> httpx.Response:
        auth = ("api", self.settings.mailgun_api_key)
        if self._client is not None:
            return self._client.post(self.messages_url, data=data, auth=auth)
        with httpx.Client(timeout=10) as client:
            return client.post(self.messages_url, data=data, auth=auth)

    def notify(
        self, recipient: Recipient, template: str, context: Mapping[str, Any]
    ) -> NotificationOutcome:
        if not recipient.email:
            logger.warning(
                "Recipient has no email address; skipping notification",
                extra={"template": template, "user_id": recipient.user_id},
            )
            return NotificationOutcome(
                recipient=recipient,
                template=template,
                status=DeliveryStatus.skipped,
                detail="no email address",
            )
        message = render(template, context)
        try:
            response = self._post(
                {
                    "from": self.settings.mail_from,
                    "to": recipient.email,
                    "subject": message.subject,
                    "text": message.text,
                }
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DependencyError(f"Email delivery to {recipient.email} failed") from exc
        logger.info(
            "Email sent", extra={"template": template, "user_id": recipient.user_id}
        )
        return NotificationOutcome(
            recipient=recipient, template=template, status=DeliveryStatus.sent
        )
