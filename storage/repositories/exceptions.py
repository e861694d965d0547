"""
Storage Exceptions.

============================================================
USAGE
============================================================
Repositories never let SQLAlchemy errors escape: each one is
translated into a StorageError subclass. StorageError is a
MonitorException, so storage failures carry a severity and
a context like every other monitor error.

StorageError
├── DeploymentRecordNotFoundError  (also a NotFoundError)
├── DuplicateRecordError           primary-key collision
├── StorageUnavailableError        connection lost / schema missing
├── QueryError                     any other statement failure
└── TransactionError               commit failed

============================================================
"""

from typing import Any, Optional

from core.exceptions import MonitorException, NotFoundError, Severity


class StorageError(MonitorException):
    """Base exception for persistence failures."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        repository_name: str,
        operation: str,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        context["repository"] = repository_name
        context["operation"] = operation

        super().__init__(f"[{repository_name}] {operation}: {message}", context=context, **kwargs)
        self.repository_name = repository_name
        self.operation = operation


class DeploymentRecordNotFoundError(StorageError, NotFoundError):
    """No stored snapshot exists for the deployment."""

    default_severity = Severity.LOW

    def __init__(self, deployment_id: str, operation: str = "load"):
        super().__init__(
            f"Deployment {deployment_id} is not stored",
            repository_name="DeploymentRepository",
            operation=operation,
            context={"deployment_id": deployment_id},
        )
        self.deployment_id = deployment_id


class DuplicateRecordError(StorageError):
    """A row with the same primary key already exists."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        key: str,
        value: Optional[Any] = None,
        cause: Optional[Exception] = None,
    ):
        context = {"key": key}
        if value is not None:
            context["value"] = str(value)
        super().__init__(
            f"Duplicate {key}",
            repository_name=repository_name,
            operation=operation,
            context=context,
            cause=cause,
        )
        self.key = key
        self.value = value


class StorageUnavailableError(StorageError):
    """The database cannot be reached or its tables are missing."""

    def __init__(self, repository_name: str, operation: str, cause: Exception):
        super().__init__(
            "Database unavailable",
            repository_name=repository_name,
            operation=operation,
            cause=cause,
        )


class QueryError(StorageError):
    """A statement failed for any other reason."""

    def __init__(self, repository_name: str, operation: str, cause: Exception):
        super().__init__(
            f"Statement failed: {type(cause).__name__}",
            repository_name=repository_name,
            operation=operation,
            cause=cause,
        )


class TransactionError(StorageError):
    """Committing a session scope failed; the transaction was rolled back."""

    def __init__(self, cause: Exception):
        super().__init__(
            "Commit failed, rolled back",
            repository_name="session_scope",
            operation="commit",
            cause=cause,
        )
