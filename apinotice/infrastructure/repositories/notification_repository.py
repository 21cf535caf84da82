"""Persistence helpers for scheduled notices."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from apinotice.domain.entities import (
    DueNotification,
    Notification,
    NotificationKind,
    NotificationStatus,
)
from apinotice.infrastructure.models import ApiModel, ApiVersionModel, NotificationModel
from apinotice.utils import ensure_naive_utc, ensure_utc, now_naive_utc

DEFAULT_DUE_LIMIT = 50


class NotificationRepository:
    """Store and select scheduled notices.

    Implements the ``NotificationStore`` contract consumed by the dispatcher.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(
        self,
        api_id: str,
        version_id: str,
        kind: NotificationKind,
        scheduled_at: datetime,
    ) -> Notification:
        model = NotificationModel(
            id=str(uuid4()),
            api_id=api_id,
            version_id=version_id,
            type=NotificationKind(kind).value,
            scheduled_at=ensure_naive_utc(scheduled_at),
            status=NotificationStatus.PENDING.value,
            attempts=0,
            retry_after=None,
            last_error=None,
            created_at=now_naive_utc(),
        )
        with self._writing():
            self.session.add(model)
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, notification_id: str) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return None
        self.session.refresh(model)
        return self._to_entity(model)

    def list_for_api(self, api_id: str) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.api_id == api_id)
            .order_by(
                NotificationModel.scheduled_at.asc(),
                NotificationModel.created_at.desc(),
                NotificationModel.id.asc(),
            )
        )
        return [self._to_entity(model) for model in query.all()]

    def list_due(self, now: datetime, limit: int) -> Sequence[DueNotification]:
        """Return pending notices whose schedule and retry delay have elapsed."""

        if limit <= 0:
            limit = DEFAULT_DUE_LIMIT
        cutoff = ensure_naive_utc(now)
        rows = (
            self.session.query(
                NotificationModel.id,
                ApiModel.id,
                ApiModel.org_id,
                ApiModel.name,
                ApiVersionModel.id,
                ApiVersionModel.version,
                NotificationModel.type,
                ApiModel.contact_email,
                ApiModel.docs_url,
                ApiModel.base_url,
                NotificationModel.scheduled_at,
                NotificationModel.attempts,
            )
            .join(ApiModel, ApiModel.id == NotificationModel.api_id)
            .join(ApiVersionModel, ApiVersionModel.id == NotificationModel.version_id)
            .filter(NotificationModel.status == NotificationStatus.PENDING.value)
            .filter(NotificationModel.scheduled_at <= cutoff)
            .filter(
                or_(
                    NotificationModel.retry_after.is_(None),
                    NotificationModel.retry_after <= cutoff,
                )
            )
            .filter(ApiModel.deleted_at.is_(None))
            .filter(ApiVersionModel.deleted_at.is_(None))
            .order_by(NotificationModel.scheduled_at.asc(), NotificationModel.id.asc())
            .limit(limit)
            .all()
        )
        return [
            DueNotification(
                id=note_id,
                api_id=api_id,
                org_id=org_id,
                api_name=api_name,
                version_id=version_id,
                version=version,
                kind=NotificationKind(kind),
                scheduled_at=ensure_utc(scheduled_at),
                attempts=attempts or 0,
                contact_email=_blank_to_none(contact_email),
                docs_url=_blank_to_none(docs_url),
                base_url=_blank_to_none(base_url),
            )
            for (
                note_id,
                api_id,
                org_id,
                api_name,
                version_id,
                version,
                kind,
                contact_email,
                docs_url,
                base_url,
                scheduled_at,
                attempts,
            ) in rows
        ]

    def mark_sent(self, notification_id: str) -> bool:
        return self._update_pending(
            notification_id,
            {
                NotificationModel.status: NotificationStatus.SENT.value,
                NotificationModel.retry_after: None,
            },
        )

    def schedule_retry(
        self,
        notification_id: str,
        next_attempt_at: datetime,
        attempts: int,
        last_error: str,
    ) -> bool:
        return self._update_pending(
            notification_id,
            {
                NotificationModel.attempts: attempts,
                NotificationModel.retry_after: ensure_naive_utc(next_attempt_at),
                NotificationModel.last_error: last_error,
            },
        )

    def auto_cancel(
        self, notification_id: str, reason: str, *, attempts: int | None = None
    ) -> bool:
        values: dict[Any, Any] = {
            NotificationModel.status: NotificationStatus.CANCELED.value,
            NotificationModel.retry_after: None,
            NotificationModel.last_error: reason,
        }
        if attempts is not None:
            values[NotificationModel.attempts] = attempts
        return self._update_pending(notification_id, values)

    def set_status(
        self,
        notification_id: str,
        status: NotificationStatus,
        *,
        reason: str | None = None,
        expected: NotificationStatus | None = None,
    ) -> Notification | None:
        """Write ``status`` for an explicit user action.

        With ``expected`` the write only applies while the record still has
        that status; ``None`` is returned when nothing was updated.
        """

        status = NotificationStatus(status)
        values: dict[Any, Any] = {NotificationModel.status: status.value}
        if status.is_terminal:
            values[NotificationModel.retry_after] = None
        if reason is not None:
            values[NotificationModel.last_error] = reason
        query = self.session.query(NotificationModel).filter(
            NotificationModel.id == notification_id
        )
        if expected is not None:
            query = query.filter(
                NotificationModel.status == NotificationStatus(expected).value
            )
        with self._writing():
            updated = query.update(values, synchronize_session=False)
        if not updated:
            return None
        return self.get(notification_id)

    def _update_pending(self, notification_id: str, values: dict[Any, Any]) -> bool:
        with self._writing():
            updated = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.id == notification_id)
                .filter(NotificationModel.status == NotificationStatus.PENDING.value)
                .update(values, synchronize_session=False)
            )
        return bool(updated)

    @contextmanager
    def _writing(self) -> Iterator[None]:
        """Commit the enclosed writes, rolling back if the database rejects them."""

        try:
            yield
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            api_id=model.api_id,
            version_id=model.version_id,
            kind=NotificationKind(model.type),
            scheduled_at=ensure_utc(model.scheduled_at),
            status=NotificationStatus(model.status),
            attempts=model.attempts or 0,
            retry_after=ensure_utc(model.retry_after),
            last_error=model.last_error,
            created_at=ensure_utc(model.created_at),
        )


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


__all__ = ["DEFAULT_DUE_LIMIT", "NotificationRepository"]
