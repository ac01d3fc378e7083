"""Single entry point routing ``{action, ...payload}`` requests to the services.

Every response carries ``success`` and the echoed ``action``; failures carry a
human-readable ``message`` and never a stack trace.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from ..core.errors import ActionError, UnknownActionError, ValidationError
from ..db import schemas
from ..domain import SlotKey
from ..services import Services

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

Result = tuple[int, dict[str, Any]]

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def _describe_payload_error(exc: PayloadError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "__root__")
        message = error.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid payload"


def parse_payload(model: type[M], payload: Mapping[str, Any]) -> M:
    try:
        return model.model_validate(dict(payload))
    except PayloadError as exc:
        raise ValidationError(_describe_payload_error(exc)) from exc


class ActionDispatcher:
    def __init__(self, services: Services) -> None:
        self.services = services
        self._handlers: dict[str, Callable[[Mapping[str, Any]], Result]] = {
            "submitAvailability": self.submit_availability,
            "findMatches": self.find_matches,
            "getUserAvailability": self.get_user_availability,
            "triggerMatchCheck": self.trigger_match_check,
            "createClass": self.create_class,
            "joinClass": self.join_class,
            "leaveClass": self.leave_class,
            "updateClass": self.update_class,
            "cancelClass": self.cancel_class,
            "reactivateClass": self.reactivate_class,
            "deleteClass": self.delete_class,
            "getClassDetails": self.get_class_details,
            "getAvailableClasses": self.get_available_classes,
            "getAllClasses": self.get_all_classes,
            "classReminder": self.class_reminder,
            "getClassTypes": self.get_class_types,
            "getAllClassTypes": self.get_all_class_types,
            "createClassType": self.create_class_type,
            "updateClassType": self.update_class_type,
            "deleteClassType": self.delete_class_type,
            "register": self.register,
            "getProfile": self.get_profile,
            "verifyAdmin": self.verify_admin,
            "getUsersByClass": self.get_users_by_class,
        }

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    def dispatch(self, body: Mapping[str, Any] | None) -> Result:
        body = dict(body or {})
        action = body.pop("action", None)
        if not action:
            return 400, {
                "success": False,
                "action": "unknown",
                "message": "Invalid action: No action specified.",
            }
        if not isinstance(action, str):
            logger.warning("Rejected non-string action", extra={"action": repr(action)})
            return 400, {
                "success": False,
                "action": "unknown",
                "message": "Invalid action: action must be a string.",
            }
        handler = self._handlers.get(action)
        try:
            if handler is None:
                raise UnknownActionError(f"Invalid action specified: {action}")
            status_code, result = handler(body)
        except ActionError as exc:
            if exc.status_code >= 500:
                logger.error(
                    "Action failed",
                    extra={"action": action, "status_code": exc.status_code},
                )
            else:
                logger.warning(
                    "Action rejected: %s",
                    exc.message,
                    extra={"action": action, "status_code": exc.status_code},
                )
            return exc.status_code, {"success": False, "action": action, "message": exc.message}
        except Exception:
            logger.exception("Unhandled error while processing action", extra={"action": action})
            return 500, {"success": False, "action": action, "message": INTERNAL_ERROR_MESSAGE}
        logger.info("Action handled", extra={"action": action, "status_code": status_code})
        return status_code, {"success": True, "action": action, **result}

    # availability

    def submit_availability(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.AvailabilitySubmit, payload)
        availability, formed = self.services.matcher.submit_availability(
            request.user_id,
            request.class_type,
            request.availabilities,
            check_for_matches=request.check_for_matches,
        )
        return 201, {
            "message": "Availability submitted successfully",
            "availabilityId": availability.id,
            "formedClassIds": [scheduled.id for scheduled in formed],
        }

    def find_matches(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.MatchQuery, payload)
        matches = self.services.matcher.find_matches(
            request.class_type,
            SlotKey.of(request.day, request.time),
            request.exclude_user_id,
        )
        return 200, {"matches": [match.to_payload() for match in matches]}

    def get_user_availability(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.UserRef, payload)
        availabilities = self.services.matcher.get_user_availability(request.user_id)
        return 200, {
            "availabilities": [
                schemas.AvailabilityOut.from_availability(item).to_payload()
                for item in availabilities
            ]
        }

    def trigger_match_check(self, payload: Mapping[str, Any]) -> Result:
        results = self.services.matcher.sweep()
        return 200, {"results": [result.to_payload() for result in results]}

    # classes

    def create_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassCreate, payload)
        scheduled = self.services.roster.create_class(
            request.class_type_ref,
            request.day,
            request.time,
            initial_members=[(member.user_id, member.name) for member in request.initial_members],
            total_spots=request.total_spots,
        )
        return 201, {
            "message": "Class created successfully",
            "classId": scheduled.id,
            "class": self.services.roster.describe(scheduled).to_payload(),
        }

    def join_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.JoinRequest, payload)
        scheduled = self.services.roster.join_class(
            request.class_id,
            request.user_id,
            request.name,
            email=request.email,
            phone=request.phone,
        )
        return 200, {"message": "Successfully joined class", "spotsLeft": scheduled.spots_left}

    def leave_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.LeaveRequest, payload)
        scheduled = self.services.roster.leave_class(request.class_id, request.user_id)
        return 200, {"message": "Successfully left class", "spotsLeft": scheduled.spots_left}

    def update_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassUpdate, payload)
        scheduled = self.services.roster.update_class(
            request.class_id,
            day=request.day,
            time=request.time,
            class_type_id=request.class_type_id,
            total_spots=request.total_spots,
        )
        return 200, {
            "message": "Class updated successfully",
            "class": self.services.roster.describe(scheduled).to_payload(),
        }

    def cancel_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassCancel, payload)
        scheduled = self.services.roster.cancel_class(request.class_id, request.reason)
        return 200, {
            "message": "Class cancelled successfully",
            "class": self.services.roster.describe(scheduled).to_payload(),
        }

    def reactivate_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassRef, payload)
        scheduled = self.services.roster.reactivate_class(request.class_id)
        return 200, {
            "message": "Class reactivated successfully",
            "class": self.services.roster.describe(scheduled).to_payload(),
        }

    def delete_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassRef, payload)
        self.services.roster.delete_class(request.class_id)
        return 200, {"message": "Class deleted successfully"}

    def get_class_details(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassRef, payload)
        details = self.services.roster.get_class_details(request.class_id)
        return 200, {"class": details.to_payload()}

    def get_available_classes(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassListQuery, payload)
        classes = self.services.roster.list_available(request.class_type)
        return 200, {"classes": [item.to_payload() for item in classes]}

    def get_all_classes(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassListQuery, payload)
        classes, total = self.services.roster.list_all(
            category=request.class_type,
            status=request.status,
            limit=request.limit,
            offset=request.offset,
        )
        return 200, {"classes": [item.to_payload() for item in classes], "total": total}

    def class_reminder(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassReminder, payload)
        outcomes = self.services.roster.send_reminder(request.class_id, request.message)
        return 200, {
            "message": f"Reminder processed for {len(outcomes)} members",
            "reminderResults": [outcome.to_payload() for outcome in outcomes],
        }

    # class types

    def get_class_types(self, payload: Mapping[str, Any]) -> Result:
        class_types = self.services.class_types.list_active()
        return 200, {"classTypes": [item.to_payload() for item in class_types]}

    def get_all_class_types(self, payload: Mapping[str, Any]) -> Result:
        class_types = self.services.class_types.list_all(with_usage=True)
        return 200, {"classTypes": [item.to_payload() for item in class_types]}

    def create_class_type(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassTypeCreate, payload)
        class_type = self.services.class_types.create(request)
        return 201, {
            "message": "Class type created successfully",
            "classType": class_type.to_payload(),
        }

    def update_class_type(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassTypeUpdate, payload)
        class_type = self.services.class_types.update(request)
        return 200, {
            "message": "Class type updated successfully",
            "classType": class_type.to_payload(),
        }

    def delete_class_type(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassTypeRef, payload)
        self.services.class_types.delete(request.class_type_id)
        return 200, {"message": "Class type deleted successfully"}

    # users

    def register(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.UserRegister, payload)
        profile = self.services.users.register(request)
        return 201, {
            "message": "User registered successfully",
            "userId": profile.id,
            "user": profile.to_payload(),
        }

    def get_profile(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.UserRef, payload)
        return 200, {"user": self.services.users.get_profile(request.user_id).to_payload()}

    def verify_admin(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.UserRef, payload)
        return 200, {
            "isAdmin": self.services.users.verify_admin(request.user_id),
            "userId": request.user_id,
        }

    def get_users_by_class(self, payload: Mapping[str, Any]) -> Result:
        request = parse_payload(schemas.ClassRef, payload)
        scheduled = self.services.roster.get_class(request.class_id)
        members = self.services.users.describe_members(scheduled)
        return 200, {
            "members": [member.to_payload() for member in members],
            "totalMembers": len(members),
        }
