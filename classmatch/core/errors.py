"""Error taxonomy shared by the store, the services and the action dispatcher.

Every error carries the HTTP-style status code the dispatcher answers with.
Business outcomes (validation, missing documents, conflicts) are expected and
turned into ``success: false`` responses; :class:`DependencyError` marks a
failing backing service.
"""


class ActionError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ActionError):
    status_code = 400


class NotFoundError(ActionError):
    status_code = 404


class ConflictError(ActionError):
    status_code = 400


class ClassFullError(ConflictError):
    def __init__(self, message: str = "Class is full") -> None:
        super().__init__(message)


class AlreadyJoinedError(ConflictError):
    def __init__(self, message: str = "You have already joined this class") -> None:
        super().__init__(message)


class NotEnrolledError(ConflictError):
    def __init__(self, message: str = "You are not enrolled in this class") -> None:
        super().__init__(message)


class ClassNotActiveError(ConflictError):
    def __init__(self, message: str = "Class is not active") -> None:
        super().__init__(message)


class ClassTypeInUseError(ConflictError):
    pass


class VersionConflictError(ConflictError):
    def __init__(self, message: str = "Document was modified concurrently") -> None:
        super().__init__(message)


class DependencyError(ActionError):
    status_code = 500


class UnknownActionError(ActionError):
    status_code = 400

    def __init__(self, message: str = "Invalid action specified") -> None:
        super().__init__(message)


__all__ = [
    "ActionError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ClassFullError",
    "AlreadyJoinedError",
    "NotEnrolledError",
    "ClassNotActiveError",
    "ClassTypeInUseError",
    "VersionConflictError",
    "DependencyError",
    "UnknownActionError",
]
