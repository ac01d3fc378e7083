from ..config import Settings
from .base import (
    BaseDocumentStore,
    DocumentNotFoundError,
    Filter,
    StoredDocument,
    contains,
    eq,
    new_document_id,
    one_of,
)
from .memory import InMemoryDocumentStore
from .sql import SqlDocumentStore


def get_store(settings: Settings) -> BaseDocumentStore:
    if settings.store_backend == "memory":
        return InMemoryDocumentStore()
    if settings.store_backend == "sql":
        from ..db.session import Base, make_session_factory

        session_factory = make_session_factory(settings.database_url)
        Base.metadata.create_all(bind=session_factory.kw["bind"])
        return SqlDocumentStore(session_factory)
    raise ValueError(f"Unsupported store backend {settings.store_backend}")


__all__ = [
    "BaseDocumentStore",
    "DocumentNotFoundError",
    "Filter",
    "StoredDocument",
    "contains",
    "eq",
    "one_of",
    "new_document_id",
    "get_store",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
]
