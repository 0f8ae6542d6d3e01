"""Error taxonomy shared by the services and the HTTP layer."""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    error_type: str = "service_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Missing or malformed input."""

    status_code = 400
    error_type = "validation_error"


class InvalidTransitionError(ValidationError):
    """An approval gate was asked to leave a terminal state."""

    error_type = "invalid_transition"


class NotLinkedError(ServiceError):
    """Assistant or doctor is missing a required hospital or doctor link."""

    status_code = 400
    error_type = "not_linked"


class NameMismatchError(ServiceError):
    """The cnic is on record under a different name."""

    status_code = 400
    error_type = "name_mismatch"


class NotFoundError(ServiceError):
    status_code = 404
    error_type = "not_found"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ConflictError(ServiceError):
    """A uniqueness rule of the store was violated."""

    status_code = 409
    error_type = "conflict"


class AuthenticationError(ServiceError):
    status_code = 401
    error_type = "authentication_error"


class PermissionDeniedError(ServiceError):
    status_code = 403
    error_type = "permission_denied"


class UpstreamError(ServiceError):
    """The relational store or identity provider failed."""

    status_code = 500
    error_type = "upstream_error"


class PartialFailureError(ServiceError):
    """The first of two coupled writes took effect and the second did not."""

    status_code = 500
    error_type = "partial_failure"

    def __init__(self, message: str, applied: list[str] | None = None):
        super().__init__(message)
        self.applied = list(applied or [])
