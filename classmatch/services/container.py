from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from ..store import BaseDocumentStore, get_store
from .class_type_service import ClassTypeCatalog
from .matching_service import AvailabilityMatcher
from .notifications import BaseNotifier, get_notifier
from .roster_service import ClassRoster
from .user_service import UserDirectory


@dataclass(slots=True)
class Services:
    settings: Settings
    store: BaseDocumentStore
    notifier: BaseNotifier
    class_types: ClassTypeCatalog
    users: UserDirectory
    roster: ClassRoster
    matcher: AvailabilityMatcher


def build_services(
    settings: Settings,
    *,
    store: BaseDocumentStore | None = None,
    notifier: BaseNotifier | None = None,
) -> Services:
    store = store if store is not None else get_store(settings)
    notifier = notifier if notifier is not None else get_notifier(settings)
    class_types = ClassTypeCatalog(store, settings)
    users = UserDirectory(store, notifier, settings)
    roster = ClassRoster(store, class_types, users, notifier, settings)
    matcher = AvailabilityMatcher(store, class_types, roster, users, settings)
    return Services(
        settings=settings,
        store=store,
        notifier=notifier,
        class_types=class_types,
        users=users,
        roster=roster,
        matcher=matcher,
    )
