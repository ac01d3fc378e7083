from . import (
    class_type_service,
    container,
    matching_service,
    roster_service,
    user_service,
)
from .container import Services, build_services

__all__ = [
    "class_type_service",
    "container",
    "matching_service",
    "roster_service",
    "user_service",
    "Services",
    "build_services",
]
