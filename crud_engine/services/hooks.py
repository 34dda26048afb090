from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Session

from crud_engine.models.audit_log import AuditLog
from crud_engine.schemas.envelopes import Page
from crud_engine.schemas.query import QueryPlan
from crud_engine.services.serialization import primary_key_column, row_to_dict

logger = logging.getLogger(__name__)


class Hooks(ABC):
    """Before/after callbacks around each CRUD operation.

    ``before_*`` hooks run ahead of the authorization check and may transform
    the payload or plan; ``after_*`` hooks only run once the operation went
    through, and their return value is what the caller receives.

    ``before_create`` and ``before_update`` return the payload to authorize and
    persist; returning ``None`` keeps the payload they were given.
    """

    @abstractmethod
    def before_create(self, item: Any) -> Any: ...

    @abstractmethod
    def before_read_one(self, item_id: Any) -> None: ...

    @abstractmethod
    def before_read_many(self, plan: QueryPlan) -> QueryPlan: ...

    @abstractmethod
    def before_update(self, item_id: Any, new: Any) -> Any: ...

    @abstractmethod
    def before_delete(self, item_id: Any) -> None: ...

    @abstractmethod
    def after_create(self, item: Any) -> Any: ...

    @abstractmethod
    def after_read_one(self, item: Any) -> Any: ...

    @abstractmethod
    def after_read_many(self, page: Page) -> Page: ...

    @abstractmethod
    def after_update(self, old: Any, new: Any) -> Any: ...

    @abstractmethod
    def after_delete(self, item: Any) -> Any: ...


class DefaultHooks(Hooks):
    def before_create(self, item: Any) -> Any:
        return item

    def before_read_one(self, item_id: Any) -> None:
        pass

    def before_read_many(self, plan: QueryPlan) -> QueryPlan:
        return plan

    def before_update(self, item_id: Any, new: Any) -> Any:
        return new

    def before_delete(self, item_id: Any) -> None:
        pass

    def after_create(self, item: Any) -> Any:
        return item

    def after_read_one(self, item: Any) -> Any:
        return item

    def after_read_many(self, page: Page) -> Page:
        return page

    def after_update(self, old: Any, new: Any) -> Any:
        return new

    def after_delete(self, item: Any) -> Any:
        return item


class AuditHooks(DefaultHooks):
    """Writes an audit row for every successful create, update and delete."""

    def __init__(self, db: Session, resource: str, actor: str | None = None):
        self.db = db
        self.resource = resource
        self.actor = actor

    def _append(self, entity_id: Any, action: str, diff: dict[str, Any]) -> None:
        self.db.add(
            AuditLog(
                actor=self.actor,
                entity=self.resource,
                entity_id=str(entity_id),
                action=action,
                diff=diff,
            )
        )
        self.db.commit()
        logger.debug("audit %s %s id=%s actor=%s", action, self.resource, entity_id, self.actor or "-")

    @staticmethod
    def _entity_id(item: Any) -> Any:
        mapper = sa_inspect(type(item))
        return getattr(item, mapper.get_property_by_column(primary_key_column(type(item))).key)

    def before_read_one(self, item_id: Any) -> None:
        logger.debug("read %s id=%s actor=%s", self.resource, item_id, self.actor or "-")

    def after_create(self, item: Any) -> Any:
        snapshot = row_to_dict(item)
        self._append(self._entity_id(item), "CREATE", {"after": snapshot})
        return item

    def after_update(self, old: Any, new: Any) -> Any:
        before = row_to_dict(old)
        after = row_to_dict(new)
        self._append(self._entity_id(new), "UPDATE", {"before": before, "after": after})
        return new

    def after_delete(self, item: Any) -> Any:
        snapshot = row_to_dict(item)
        self._append(self._entity_id(item), "DELETE", {"before": snapshot})
        return item
