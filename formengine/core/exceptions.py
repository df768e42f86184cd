"""
Core Exceptions

Custom exceptions for the form engine.

Validation failures are never raised; they are returned as an errors map.
Everything here represents a refused transition or a storage-level failure
that the caller is expected to catch and present.
"""


class FormEngineError(Exception):
    """Base class for form engine errors."""

    def __init__(self, message: str = "Form engine error"):
        self.message = message
        super().__init__(self.message)


class SchemaError(FormEngineError):
    """Raised when a stored schema or UI config document cannot be parsed."""


class FormReadOnlyError(FormEngineError):
    """
    Raised when a mutation is attempted on a session that does not allow it.

    Read-only sessions and sessions that have already been submitted refuse
    field changes, saves and submission.
    """

    def __init__(self, message: str = "Form is read-only"):
        super().__init__(message)


class FormBusyError(FormEngineError):
    """Raised when a step change is attempted while a submission is in flight."""

    def __init__(self, message: str = "Form is submitting"):
        super().__init__(message)


class NotFoundError(FormEngineError):
    """Raised when a subject, draft or form does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class VersionNotFoundError(NotFoundError):
    """Raised when a rollback or comparison targets a missing version."""

    def __init__(self, subject_id: object, version_number: int):
        self.subject_id = subject_id
        self.version_number = version_number
        super().__init__(f"Version {version_number} not found for subject {subject_id}")


class DraftConflictError(FormEngineError):
    """
    Raised when a draft upsert loses a race on the (subject, user) uniqueness
    constraint.

    The storage layer is the only concurrency guarantee; the caller may retry.
    """

    def __init__(self, subject_id: object, user_id: object):
        self.subject_id = subject_id
        self.user_id = user_id
        super().__init__(f"Concurrent draft write for subject {subject_id}, user {user_id}")


class VersionConflictError(FormEngineError):
    """Raised when two commits race for the same version number of a subject."""

    def __init__(self, subject_id: object, version_number: int):
        self.subject_id = subject_id
        self.version_number = version_number
        super().__init__(
            f"Version {version_number} for subject {subject_id} was written concurrently"
        )
