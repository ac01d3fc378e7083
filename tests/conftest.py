from typing import Any, Mapping

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from classmatch.api import deps
from classmatch.api.dispatch import ActionDispatcher
from classmatch.api.routes import actions, misc
from classmatch.config import Settings
from classmatch.core.errors import DependencyError
from classmatch.db.schemas import ClassTypeCreate
from classmatch.db.session import Base, make_session_factory
from classmatch.services import build_services
from classmatch.services.notifications import (
    BaseNotifier,
    DeliveryStatus,
    NotificationOutcome,
    Recipient,
    render,
)
from classmatch.store import InMemoryDocumentStore, SqlDocumentStore


class RecordingNotifier(BaseNotifier):
    """Keeps every rendered message; fails for the user ids in ``failing`` (``"*"`` fails all)."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: list[tuple[Recipient, str, Any]] = []
        self.failing: set[str] = set()

    def notify(
        self, recipient: Recipient, template: str, context: Mapping[str, Any]
    ) -> NotificationOutcome:
        if recipient.user_id in self.failing or "*" in self.failing:
            raise DependencyError(f"Email delivery to {recipient.email} failed")
        self.sent.append((recipient, template, render(template, context)))
        return NotificationOutcome(recipient, template, DeliveryStatus.sent)

    def templates_for(self, user_id: str) -> list[str]:
        return [template for recipient, template, _ in self.sent if recipient.user_id == user_id]


@pytest.fixture()
def settings():
    return Settings(
        store_backend="memory",
        database_url="sqlite+pysqlite:///:memory:",
        operator_email="operator@example.com",
        app_url="https://classes.example.com",
    )


@pytest.fixture()
def sql_store():
    session_factory = make_session_factory("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=session_factory.kw["bind"])
    return SqlDocumentStore(session_factory)


@pytest.fixture()
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture()
def notifier(settings):
    return RecordingNotifier(settings)


@pytest.fixture()
def services(settings, sql_store, notifier):
    return build_services(settings, store=sql_store, notifier=notifier)


@pytest.fixture()
def mandarin(services):
    return services.class_types.create(
        ClassTypeCreate(name="Mandarin", category=["mandarin", "language"])
    )


@pytest.fixture()
def api_client(services):
    test_app = FastAPI()
    test_app.include_router(actions.router, prefix="/api/v1")
    test_app.include_router(misc.router, prefix="/api/v1")
    test_app.dependency_overrides[deps.get_dispatcher] = lambda: ActionDispatcher(services)

    with TestClient(test_app) as client:
        yield client

    test_app.dependency_overrides.clear()


@pytest.fixture()
def make_services(settings):
    def factory(store):
        return build_services(settings, store=store, notifier=RecordingNotifier(settings))

    return factory
