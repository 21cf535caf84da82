"""SQLAlchemy models for catalogued APIs and their versions."""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from apinotice.infrastructure.database import Base
from apinotice.utils import now_naive_utc


class ApiModel(Base):
    """Database representation of an API owned by an organization."""

    __tablename__ = "apis"

    id = Column(String(36), primary_key=True)
    org_id = Column(String(36), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    base_url = Column(String(2048), nullable=True)
    docs_url = Column(String(2048), nullable=True)
    contact_email = Column(String(320), nullable=True)
    owner_team = Column(String(120), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_naive_utc)
    deleted_at = Column(DateTime(), nullable=True)

    versions = relationship(
        "ApiVersionModel",
        back_populates="api",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ApiVersionModel(Base):
    """Database representation of a version published for an API."""

    __tablename__ = "api_versions"
    __table_args__ = (UniqueConstraint("api_id", "version", name="uq_api_version"),)

    id = Column(String(36), primary_key=True)
    api_id = Column(
        String(36), ForeignKey("apis.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version = Column(String(64), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    sunset_date = Column(Date(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_naive_utc)
    deleted_at = Column(DateTime(), nullable=True)

    api = relationship("ApiModel", back_populates="versions")


__all__ = ["ApiModel", "ApiVersionModel"]
