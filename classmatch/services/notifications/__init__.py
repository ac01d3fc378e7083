from .base import (
    BaseNotifier,
    DeliveryStatus,
    NotificationOutcome,
    Recipient,
    deliver,
    get_notifier,
)
from .console import ConsoleNotifier
from .mailgun import MailgunNotifier
from .templates import Message, render

__all__ = [
    "BaseNotifier",
    "DeliveryStatus",
    "NotificationOutcome",
    "Recipient",
    "deliver",
    "get_notifier",
    "ConsoleNotifier",
    "MailgunNotifier",
    "Message",
    "render",
]
