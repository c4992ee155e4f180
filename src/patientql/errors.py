"""
Domain errors raised by the storage client and surfaced through GraphQL.

graphql-core copies the ``extensions`` of the original exception onto the
formatted error, so every error here reaches clients as an ``errors`` entry
with a machine readable ``extensions.code``.
"""

from typing import Any


class PatientError(Exception):
    """Base class for errors reported to GraphQL clients."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code}


class PatientNotFoundError(PatientError):
    """No patient row matches the requested id."""

    code = "NOT_FOUND"

    def __init__(self, patient_id: int | None) -> None:
        self.patient_id = patient_id
        if patient_id is None:
            super().__init__("Patient id is required")
        else:
            super().__init__(f"Patient {patient_id} not found")

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code, "id": self.patient_id}


class PatientConflictError(PatientError):
    """The write would violate the unique email constraint."""

    code = "CONFLICT"

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"A patient with email '{email}' already exists")


class StorageError(PatientError):
    """The database failed while serving a request."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message)


class StartupError(Exception):
    """Raised when the service cannot start (database unreachable, bad schema)."""
