from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import Any, Mapping

from ...config import Settings
from ...core.errors import DependencyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Recipient:
    name: str
    email: str | None = None
    phone: str | None = None
    user_id: str | None = None


class DeliveryStatus(str, PyEnum):
    sent = "sent"
    skipped = "skipped"
    failed = "failed"


@dataclass(slots=True)
class NotificationOutcome:
    recipient: Recipient
    template: str
    status: DeliveryStatus
    detail: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "userId": self.recipient.user_id,
            "email": self.recipient.email,
            "template": self.template,
            "status": self.status.value,
            "error": self.detail if self.status == DeliveryStatus.failed else None,
        }


class BaseNotifier(ABC):
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @abstractmethod
    def notify(
        self, recipient: Recipient, template: str, context: Mapping[str, Any]
    ) -> NotificationOutcome:
        """Deliver one templated message; raise DependencyError when the transport fails."""
        raise NotImplementedError


def deliver(
    notifier: BaseNotifier,
    recipient: Recipient,
    template: str,
    context: Mapping[str, Any],
) -> NotificationOutcome:
    """Best-effort delivery: transport failures are logged and reported, never raised."""
    try:
        return notifier.notify(recipient, template, context)
    except DependencyError as exc:
        logger.exception(
            "Failed to send notification",
            extra={"template": template, "user_id": recipient.user_id},
        )
        return NotificationOutcome(
            recipient=recipient,
            template=template,
            status=DeliveryStatus.failed,
            detail=exc.message,
        )


def get_notifier(settings: Settings) -> BaseNotifier:
    if settings.mail_enabled:
        from .mailgun import MailgunNotifier

        return MailgunNotifier(settings)
    from .console import ConsoleNotifier

    return ConsoleNotifier(settings)
