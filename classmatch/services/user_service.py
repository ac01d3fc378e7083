from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..config import Settings
from ..core import security
from ..core.constants import ADMIN_LABEL
from ..core.errors import ConflictError, NotFoundError
from ..db import schemas
from ..domain import ScheduledClass
from ..store import BaseDocumentStore, DocumentNotFoundError, StoredDocument, eq
from .notifications import BaseNotifier, Recipient, deliver

logger = logging.getLogger(__name__)


def _to_profile(document: StoredDocument) -> schemas.UserProfile:
    data = document.data
    return schemas.UserProfile(
        id=document.id,
        name=data.get("name") or "",
        email=data.get("email") or "",
        phone=data.get("phone"),
    )


class UserDirectory:
    def __init__(
        self, store: BaseDocumentStore, notifier: BaseNotifier, settings: Settings
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._settings = settings
        self._collection = settings.users_collection

    def _get(self, user_id: str) -> StoredDocument:
        try:
            return self._store.get(self._collection, user_id)
        except DocumentNotFoundError as exc:
            raise NotFoundError("User not found") from exc

    def register(self, payload: schemas.UserRegister) -> schemas.UserProfile:
        email = payload.email.lower()
        if self._store.list(self._collection, [eq("email", email)]):
            raise ConflictError("A user with this email already exists")
        document = self._store.create(
            self._collection,
            None,
            {
                "email": email,
                "name": payload.name,
                "phone": payload.phone,
                "passwordHash": security.get_password_hash(payload.password),
                "labels": [],
                "createdAt": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info("User registered", extra={"user_id": document.id})
        deliver(
            self._notifier,
            Recipient(name=payload.name, email=email, phone=payload.phone, user_id=document.id),
            "welcome",
            {"userName": payload.name, "appUrl": self._settings.app_url},
        )
        return _to_profile(document)

    def get_profile(self, user_id: str) -> schemas.UserProfile:
        return _to_profile(self._get(user_id))

    def verify_admin(self, user_id: str) -> bool:
        labels = self._get(user_id).data.get("labels") or []
        return ADMIN_LABEL in labels

    def find_recipient(
        self,
        user_id: str,
        *,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> Recipient:
        """Contact details for a user; explicit arguments win over the stored profile."""
        try:
            data = self._store.get(self._collection, user_id).data
        except DocumentNotFoundError:
            data = {}
        return Recipient(
            name=name or data.get("name") or user_id,
            email=email or data.get("email"),
            phone=phone or data.get("phone"),
            user_id=user_id,
        )

    def describe_members(self, scheduled: ScheduledClass) -> list[schemas.MemberDetails]:
        details = []
        for member in scheduled.members:
            try:
                profile = self.get_profile(member.user_id)
            except NotFoundError:
                logger.warning(
                    "Member has no user record", extra={"user_id": member.user_id}
                )
                details.append(
                    schemas.MemberDetails(
                        user_id=member.user_id,
                        name=member.name or "Unknown",
                        email="Unknown",
                        phone="Unknown",
                        joined_at=member.joined_at,
                        error="Could not fetch user details",
                    )
                )
                continue
            details.append(
                schemas.MemberDetails(
                    user_id=member.user_id,
                    name=member.name or profile.name,
                    email=profile.email,
                    phone=profile.phone or "",
                    joined_at=member.joined_at,
                )
            )
        return details
