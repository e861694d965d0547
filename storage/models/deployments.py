"""
Deployment ORM Model.

One row per deployment. Service states, the bounded audit log
and the latest health-check results are stored as JSON
documents in the shape produced by DeploymentStateMachine.to_dict().
"""

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import JSON, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base


class DeploymentRecord(Base):
    """Persisted deployment snapshot."""

    __tablename__ = "deployments"

    deployment_id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        comment="uuid4 hex, never reused"
    )

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owning user"
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    environment: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="development, staging, production"
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Overall status"
    )

    services: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    logs: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    health_checks: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        comment="When the deployment was created"
    )

    saved_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Last time this snapshot was written"
    )

    __table_args__ = (
        Index("idx_deployments_owner_created", "owner_id", "created_at"),
        Index("idx_deployments_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<DeploymentRecord {self.deployment_id} {self.status}>"
