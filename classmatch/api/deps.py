from functools import lru_cache

from ..config import get_settings
from ..services import Services, build_services
from .dispatch import ActionDispatcher


@lru_cache(maxsize=1)
def get_services() -> Services:
    return build_services(get_settings())


def get_dispatcher() -> ActionDispatcher:
    return ActionDispatcher(get_services())
