"""Errors raised by the catalog and billing services.

Routes translate these into the JSON error envelope using ``status_code``.
Nothing in the services retries; callers decide what to do with a failure.
"""


class ServiceError(Exception):
    status_code = 500
    default_message = "Service error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid input"


class NotFound(ServiceError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ServiceError):
    status_code = 409
    default_message = "Conflict"


class AllocationError(ServiceError):
    status_code = 500
    default_message = "Unable to allocate item id"


class StorageError(ServiceError):
    status_code = 500
    default_message = "Storage failure"


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFound",
    "ConflictError",
    "AllocationError",
    "StorageError",
]
