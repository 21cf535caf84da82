"""SQLAlchemy model for scheduled notices."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text

from apinotice.infrastructure.database import Base
from apinotice.utils import now_naive_utc


class NotificationModel(Base):
    """Database representation of a deprecation or sunset notice."""

    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint("type IN ('deprecate', 'sunset')", name="ck_notification_type"),
        CheckConstraint(
            "status IN ('pending', 'sent', 'canceled')", name="ck_notification_status"
        ),
        Index("ix_notifications_due", "status", "scheduled_at"),
    )

    id = Column(String(36), primary_key=True)
    api_id = Column(
        String(36), ForeignKey("apis.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_id = Column(
        String(36),
        ForeignKey("api_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String(20), nullable=False)
    scheduled_at = Column(DateTime(), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    attempts = Column(Integer, nullable=False, default=0)
    retry_after = Column(DateTime(), nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_naive_utc)


__all__ = ["NotificationModel"]
