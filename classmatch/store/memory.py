from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from ..core.errors import ConflictError, VersionConflictError
from .base import (
    BaseDocumentStore,
    DocumentNotFoundError,
    Filter,
    StoredDocument,
    matches_all,
    new_document_id,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryDocumentStore(BaseDocumentStore):
    """Process-local store for development and tests.

    Every call copies documents in and out, so callers never share mutable
    state with the store.
    """

    def __init__(self) -> None:
        self._documents: dict[tuple[str, str], StoredDocument] = {}
        self._lock = threading.RLock()

    def create(
        self, collection: str, document_id: str | None, fields: Mapping[str, Any]
    ) -> StoredDocument:
        document_id = document_id or new_document_id()
        now = _utc_now()
        with self._lock:
            key = (collection, document_id)
            if key in self._documents:
                raise ConflictError(f"Document {document_id!r} already exists")
            document = StoredDocument(
                collection=collection,
                id=document_id,
                data=copy.deepcopy(dict(fields)),
                version=1,
                created_at=now,
                updated_at=now,
            )
            self._documents[key] = document
            return copy.deepcopy(document)

    def get(self, collection: str, document_id: str) -> StoredDocument:
        with self._lock:
            document = self._documents.get((collection, document_id))
            if document is None:
                raise DocumentNotFoundError(collection, document_id)
            return copy.deepcopy(document)

    def update(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> StoredDocument:
        with self._lock:
            document = self._documents.get((collection, document_id))
            if document is None:
                raise DocumentNotFoundError(collection, document_id)
            if expected_version is not None and document.version != expected_version:
                raise VersionConflictError()
            document.data.update(copy.deepcopy(dict(patch)))
            document.version += 1
            document.updated_at = _utc_now()
            return copy.deepcopy(document)

    def delete(self, collection: str, document_id: str) -> None:
        with self._lock:
            if self._documents.pop((collection, document_id), None) is None:
                raise DocumentNotFoundError(collection, document_id)

    def list(
        self, collection: str, filters: Sequence[Filter] = ()
    ) -> list[StoredDocument]:
        with self._lock:
            return [
                copy.deepcopy(document)
                for (doc_collection, _), document in self._documents.items()
                if doc_collection == collection and matches_all(document.data, filters)
            ]
