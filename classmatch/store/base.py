from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence
from uuid import uuid4

from ..core.errors import NotFoundError


class DocumentNotFoundError(NotFoundError):
    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"Document {document_id!r} not found in {collection!r}")
        self.collection = collection
        self.document_id = document_id


@dataclass(slots=True)
class StoredDocument:
    collection: str
    id: str
    data: dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.data}


@dataclass(frozen=True, slots=True)
class Filter:
    """A predicate on one top-level field of a document.

    ``eq`` compares for equality, ``in`` tests the field value for membership
    in ``value`` and ``contains`` tests a list field for containing ``value``.
    """

    field: str
    op: str
    value: Any

    def matches(self, data: Mapping[str, Any]) -> bool:
        current = data.get(self.field)
        if self.op == "eq":
            return current == self.value
        if self.op == "in":
            return current in self.value
        if self.op == "contains":
            return isinstance(current, list) and self.value in current
        raise ValueError(f"Unsupported filter operator {self.op}")


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "eq", value)


def one_of(field: str, values: Iterable[Any]) -> Filter:
    return Filter(field, "in", frozenset(values))


def contains(field: str, value: Any) -> Filter:
    return Filter(field, "contains", value)


def matches_all(data: Mapping[str, Any], filters: Sequence[Filter]) -> bool:
    return all(item.matches(data) for item in filters)


def new_document_id() -> str:
    return uuid4().hex


class BaseDocumentStore(ABC):
    """CRUD and query access to schemaless JSON documents grouped by collection.

    Every document carries a ``version`` bumped on each write. ``update`` with
    ``expected_version`` only succeeds when the stored version still matches,
    otherwise it raises :class:`~classmatch.core.errors.VersionConflictError`.
    """

    @abstractmethod
    def create(
        self, collection: str, document_id: str | None, fields: Mapping[str, Any]
    ) -> StoredDocument:
        raise NotImplementedError

    @abstractmethod
    def get(self, collection: str, document_id: str) -> StoredDocument:
        raise NotImplementedError

    @abstractmethod
    def update(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> StoredDocument:
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection: str, document_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(
        self, collection: str, filters: Sequence[Filter] = ()
    ) -> list[StoredDocument]:
        raise NotImplementedError
