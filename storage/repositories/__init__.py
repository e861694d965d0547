"""
Repository Layer.

Repositories take an injected Session and never commit; wrap
calls in storage.database.session_scope().
"""

from storage.repositories.base import BaseRepository
from storage.repositories.deployments import DeploymentRepository
from storage.repositories.exceptions import (
    DeploymentRecordNotFoundError,
    DuplicateRecordError,
    QueryError,
    StorageError,
    StorageUnavailableError,
    TransactionError,
)
from storage.repositories.metrics import MetricSampleRepository


__all__ = [
    "BaseRepository",
    "DeploymentRepository",
    "MetricSampleRepository",
    "StorageError",
    "DeploymentRecordNotFoundError",
    "DuplicateRecordError",
    "StorageUnavailableError",
    "QueryError",
    "TransactionError",
]
