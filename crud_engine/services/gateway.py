from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crud_engine.core.errors import IntegrityViolation
from crud_engine.schemas.envelopes import Page
from crud_engine.schemas.query import QueryPlan
from crud_engine.services.query_apply import apply_query_plan

logger = logging.getLogger(__name__)


class PersistenceGateway(ABC):
    """Storage boundary the orchestrator talks to."""

    @abstractmethod
    def read(self, plan: QueryPlan) -> Page: ...

    @abstractmethod
    def read_one(self, item_id: Any) -> Any | None: ...

    @abstractmethod
    def create(self, item: Any) -> Any: ...

    @abstractmethod
    def update(self, item: Any) -> Any: ...

    @abstractmethod
    def delete(self, item: Any) -> None: ...


class SqlAlchemyGateway(PersistenceGateway):
    def __init__(self, db: Session, model: type):
        self.db = db
        self.model = model

    def read(self, plan: QueryPlan) -> Page:
        query = apply_query_plan(self.db.query(self.model), self.model, plan)
        total = query.order_by(None).count()
        rows = query.offset(plan.page_no * plan.page_size).limit(plan.page_size).all()
        return Page(
            items=rows,
            total_count=total,
            page_no=plan.page_no,
            page_size=plan.page_size,
            select=list(plan.select),
        )

    def read_one(self, item_id: Any) -> Any | None:
        row = self.db.get(self.model, item_id)
        if row is None:
            return None
        # Detach so that a later merge of the update payload leaves this snapshot intact.
        self.db.expunge(row)
        return row

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("%s %s rejected by constraints: %s", action, self.model.__name__, exc.orig)
            raise IntegrityViolation()

    def create(self, item: Any) -> Any:
        self.db.add(item)
        self._commit("create")
        self.db.refresh(item)
        return item

    def update(self, item: Any) -> Any:
        merged = self.db.merge(item)
        self._commit("update")
        self.db.refresh(merged)
        return merged

    def delete(self, item: Any) -> None:
        self.db.delete(self.db.merge(item))
        self._commit("delete")
