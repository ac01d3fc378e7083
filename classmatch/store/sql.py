from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping, Sequence

from sqlalchemy import ColumnElement, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.errors import ConflictError, DependencyError, VersionConflictError
from ..db.models import Document
from .base import (
    BaseDocumentStore,
    DocumentNotFoundError,
    Filter,
    StoredDocument,
    matches_all,
    new_document_id,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_stored(row: Document) -> StoredDocument:
    return StoredDocument(
        collection=row.collection,
        id=row.id,
        data=dict(row.data or {}),
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _json_clause(item: Filter) -> ColumnElement[bool] | None:
    """Translate a filter into a JSON path expression, or ``None`` when it can't be."""
    column = Document.data[item.field]
    if item.op == "eq":
        value = item.value
        if isinstance(value, bool):
            return column.as_boolean() == value
        if isinstance(value, str):
            return column.as_string() == value
        if isinstance(value, int):
            return column.as_integer() == value
        return None
    if item.op == "in" and all(isinstance(value, str) for value in item.value):
        return column.as_string().in_(sorted(item.value))
    return None


class SqlDocumentStore(BaseDocumentStore):
    """Documents kept as JSON rows of a single ``documents`` table.

    Equality and membership filters on scalar fields run inside the query as
    JSON path expressions, which SQLite and PostgreSQL both support. Array
    ``contains`` filters are checked on the loaded rows.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Document store operation failed")
            raise DependencyError("Document store is unavailable") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create(
        self, collection: str, document_id: str | None, fields: Mapping[str, Any]
    ) -> StoredDocument:
        document_id = document_id or new_document_id()
        now = _utc_now()
        with self._session() as session:
            if session.get(Document, (collection, document_id)) is not None:
                raise ConflictError(f"Document {document_id!r} already exists")
            row = Document(
                collection=collection,
                id=document_id,
                data=dict(fields),
                version=1,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            return _to_stored(row)

    def get(self, collection: str, document_id: str) -> StoredDocument:
        with self._session() as session:
            row = session.get(Document, (collection, document_id))
            if row is None:
                raise DocumentNotFoundError(collection, document_id)
            return _to_stored(row)

    def update(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> StoredDocument:
        with self._session() as session:
            row = session.get(Document, (collection, document_id))
            if row is None:
                raise DocumentNotFoundError(collection, document_id)
            if expected_version is not None and row.version != expected_version:
                raise VersionConflictError()
            data = {**(row.data or {}), **patch}
            now = _utc_now()
            result = session.execute(
                update(Document)
                .where(
                    Document.collection == collection,
                    Document.id == document_id,
                    Document.version == row.version,
                )
                .values(data=data, version=row.version + 1, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise VersionConflictError()
            return StoredDocument(
                collection=collection,
                id=document_id,
                data=data,
                version=row.version + 1,
                created_at=row.created_at,
                updated_at=now,
            )

    def delete(self, collection: str, document_id: str) -> None:
        with self._session() as session:
            result = session.execute(
                delete(Document).where(
                    Document.collection == collection,
                    Document.id == document_id,
                )
            )
            if result.rowcount == 0:
                raise DocumentNotFoundError(collection, document_id)

    def list(
        self, collection: str, filters: Sequence[Filter] = ()
    ) -> list[StoredDocument]:
        clauses = []
        remaining = []
        for item in filters:
            clause = _json_clause(item)
            if clause is None:
                remaining.append(item)
            else:
                clauses.append(clause)
        with self._session() as session:
            rows = session.execute(
                select(Document)
                .where(Document.collection == collection, *clauses)
                .order_by(Document.created_at, Document.id)
            ).scalars()
            return [
                _to_stored(row) for row in rows if matches_all(row.data or {}, remaining)
            ]
