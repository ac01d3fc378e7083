from __future__ import annotations

import logging
from typing import Any, Mapping

from .base import BaseNotifier, DeliveryStatus, NotificationOutcome, Recipient
from .templates import render

logger = logging.getLogger(__name__)


class ConsoleNotifier(BaseNotifier):
    """Used while mail delivery is not configured: messages are only logged."""

    def notify(
        self, recipient: Recipient, template: str, context: Mapping[str, Any]
    ) -> NotificationOutcome:
        message = render(template, context)
        logger.info(
            "Mail delivery is not configured; skipping notification",
            extra={
                "template": template,
                "user_id": recipient.user_id,
                "subject": message.subject,
            },
        )
        return NotificationOutcome(
            recipient=recipient,
            template=template,
            status=DeliveryStatus.skipped,
            detail="mail delivery not configured",
        )
