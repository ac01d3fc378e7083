from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..config import Settings
from ..core.errors import ClassTypeInUseError, NotFoundError
from ..db import schemas
from ..store import BaseDocumentStore, DocumentNotFoundError, StoredDocument, eq

logger = logging.getLogger(__name__)


def _to_class_type(document: StoredDocument) -> schemas.ClassType:
    return schemas.ClassType.model_validate(document.to_dict())


class ClassTypeCatalog:
    def __init__(self, store: BaseDocumentStore, settings: Settings) -> None:
        self._store = store
        self._collection = settings.class_types_collection
        self._classes_collection = settings.classes_collection

    def get(self, class_type_id: str) -> schemas.ClassType:
        try:
            document = self._store.get(self._collection, class_type_id)
        except DocumentNotFoundError as exc:
            raise NotFoundError("Class type not found") from exc
        return _to_class_type(document)

    def find(self, class_type_id: str) -> schemas.ClassType | None:
        try:
            return self.get(class_type_id)
        except NotFoundError:
            return None

    def resolve(self, reference: str) -> schemas.ClassType:
        """Look a class type up by id, then by name or category tag among active types."""
        class_type = self.find(reference)
        if class_type is not None:
            return class_type
        needle = reference.strip().lower()
        for candidate in self.list_active():
            tags = {tag.lower() for tag in candidate.category}
            if candidate.name.lower() == needle or needle in tags:
                return candidate
        raise NotFoundError(f"Class type {reference!r} not found")

    def ids_for_category(self, category: str) -> list[str]:
        needle = category.strip().lower()
        return [
            class_type.id
            for class_type in self.list_active()
            if needle in {tag.lower() for tag in class_type.category}
        ]

    def list_active(self) -> list[schemas.ClassType]:
        documents = self._store.list(self._collection, [eq("isActive", True)])
        return sorted((_to_class_type(doc) for doc in documents), key=lambda ct: ct.name)

    def list_all(self, *, with_usage: bool = False) -> list[schemas.ClassType]:
        class_types = sorted(
            (_to_class_type(doc) for doc in self._store.list(self._collection)),
            key=lambda ct: ct.name,
        )
        if with_usage:
            for class_type in class_types:
                class_type.usage_count = self.usage_count(class_type.id)
        return class_types

    def usage_count(self, class_type_id: str) -> int:
        return len(
            self._store.list(self._classes_collection, [eq("classTypeId", class_type_id)])
        )

    def create(self, payload: schemas.ClassTypeCreate) -> schemas.ClassType:
        document = self._store.create(
            self._collection,
            None,
            {
                "name": payload.name,
                "category": payload.category,
                "description": payload.description,
                "isActive": True,
                "createdAt": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info("Class type created", extra={"class_type_id": document.id})
        return _to_class_type(document)

    def update(self, payload: schemas.ClassTypeUpdate) -> schemas.ClassType:
        patch = payload.model_dump(by_alias=True, exclude_unset=True, exclude={"class_type_id"})
        try:
            document = self._store.update(self._collection, payload.class_type_id, patch)
        except DocumentNotFoundError as exc:
            raise NotFoundError("Class type not found") from exc
        return _to_class_type(document)

    def delete(self, class_type_id: str) -> None:
        in_use = self.usage_count(class_type_id)
        if in_use:
            raise ClassTypeInUseError(
                f"Cannot delete class type. {in_use} classes are still using it."
            )
        try:
            self._store.delete(self._collection, class_type_id)
        except DocumentNotFoundError as exc:
            raise NotFoundError("Class type not found") from exc
        logger.info("Class type deleted", extra={"class_type_id": class_type_id})
