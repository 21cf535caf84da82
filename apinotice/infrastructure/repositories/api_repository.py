"""Persistence layer for catalogued APIs."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from apinotice.domain.entities import Api
from apinotice.infrastructure.models import ApiModel
from apinotice.utils import ensure_naive_utc, ensure_utc, now_naive_utc


class ApiRepository:
    """Provide create, read, update and soft-delete operations for APIs."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, api_id: str, *, include_deleted: bool = False) -> Api | None:
        query = self.session.query(ApiModel).filter(ApiModel.id == api_id)
        if not include_deleted:
            query = query.filter(ApiModel.deleted_at.is_(None))
        model = query.first()
        return self._to_entity(model) if model else None

    def list_for_org(self, org_id: str) -> Sequence[Api]:
        query = (
            self.session.query(ApiModel)
            .filter(ApiModel.org_id == org_id)
            .filter(ApiModel.deleted_at.is_(None))
            .order_by(ApiModel.created_at.desc(), ApiModel.id.desc())
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, api: Api) -> Api:
        model = ApiModel(
            id=api.id or str(uuid4()),
            org_id=api.org_id,
            name=api.name,
            description=api.description,
            base_url=api.base_url,
            docs_url=api.docs_url,
            contact_email=api.contact_email,
            owner_team=api.owner_team,
            created_at=ensure_naive_utc(api.created_at) or now_naive_utc(),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, api_id: str, changes: Mapping[str, str | None]) -> Api | None:
        """Apply ``changes`` to a live API; return ``None`` if it does not exist."""

        model = (
            self.session.query(ApiModel)
            .filter(ApiModel.id == api_id, ApiModel.deleted_at.is_(None))
            .first()
        )
        if model is None:
            return None
        for field, value in changes.items():
            setattr(model, field, value)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def soft_delete(self, api_id: str) -> bool:
        """Mark the API as deleted; return ``False`` if it was already gone."""

        updated = (
            self.session.query(ApiModel)
            .filter(ApiModel.id == api_id, ApiModel.deleted_at.is_(None))
            .update({ApiModel.deleted_at: now_naive_utc()}, synchronize_session=False)
        )
        self.session.commit()
        return bool(updated)

    @staticmethod
    def _to_entity(model: ApiModel) -> Api:
        return Api(
            id=model.id,
            org_id=model.org_id,
            name=model.name,
            description=model.description,
            base_url=model.base_url,
            docs_url=model.docs_url,
            contact_email=model.contact_email,
            owner_team=model.owner_team,
            created_at=ensure_utc(model.created_at),
            deleted_at=ensure_utc(model.deleted_at),
        )


__all__ = ["ApiRepository"]
