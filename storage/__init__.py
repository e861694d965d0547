"""
Storage Package.

SQLAlchemy persistence for deployments and metric samples.

Modules:
- database: engine, session factory, session_scope, init_db
- models/: ORM tables
- repositories/: data access layer
"""

from storage.database import (
    create_database_engine,
    create_session_factory,
    get_engine,
    get_session_factory,
    init_db,
    reset_engine,
    session_scope,
)
from storage.repositories import (
    DeploymentRepository,
    MetricSampleRepository,
    DeploymentRecordNotFoundError,
    DuplicateRecordError,
    StorageError,
    StorageUnavailableError,
)


__all__ = [
    "create_database_engine",
    "create_session_factory",
    "get_engine",
    "get_session_factory",
    "init_db",
    "reset_engine",
    "session_scope",
    "DeploymentRepository",
    "MetricSampleRepository",
    "StorageError",
    "DeploymentRecordNotFoundError",
    "DuplicateRecordError",
    "StorageUnavailableError",
]
