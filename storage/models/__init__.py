"""
ORM Models.

Importing this package registers every table on Base.metadata.
"""

from storage.models.base import Base, UtcDateTime
from storage.models.deployments import DeploymentRecord
from storage.models.metrics import MetricSampleRecord


__all__ = [
    "Base",
    "UtcDateTime",
    "DeploymentRecord",
    "MetricSampleRecord",
]
