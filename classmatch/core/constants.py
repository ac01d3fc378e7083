"""Common application-wide constants."""

from typing import Final

# Minimum number of participants, submitter included, needed to form a class
MIN_CLASS_SIZE: Final[int] = 3

DEFAULT_CANCEL_REASON: Final[str] = "No reason provided"
UNKNOWN_CLASS_TYPE: Final[str] = "Unknown Class Type"
ADMIN_LABEL: Final[str] = "admin"

WEEKDAYS: Final[tuple[str, ...]] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


__all__ = [
    "MIN_CLASS_SIZE",
    "DEFAULT_CANCEL_REASON",
    "UNKNOWN_CLASS_TYPE",
    "ADMIN_LABEL",
    "WEEKDAYS",
]
