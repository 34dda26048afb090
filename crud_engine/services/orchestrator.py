"""Generic CRUD sequencing around a persistence gateway.

Every operation runs the same fixed steps: the before-hook, then (where a
record is targeted) the lookup, then the single authorization gate, then the
gateway call, then the after-hook. A denied or missing record aborts before
the gateway is touched and before any after-hook runs.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from crud_engine.core.errors import NotFound, Unauthorized
from crud_engine.schemas.envelopes import BatchResponse, Page
from crud_engine.services.acl import ACL, DefaultACL
from crud_engine.services.filter_parser import build_query_plan
from crud_engine.services.gateway import PersistenceGateway
from crud_engine.services.hooks import DefaultHooks, Hooks

logger = logging.getLogger(__name__)


def _or_original(transformed: Any, original: Any) -> Any:
    return original if transformed is None else transformed


class ResourceOrchestrator:
    def __init__(
        self,
        gateway: PersistenceGateway,
        acl: ACL | None = None,
        hooks: Hooks | None = None,
        id_field: str = "id",
    ):
        self.gateway = gateway
        self.acl = acl or DefaultACL()
        self.hooks = hooks or DefaultHooks()
        self.id_field = id_field

    def _deny(self, action: str) -> Unauthorized:
        logger.info("%s denied by %s", action, type(self.acl).__name__)
        return Unauthorized()

    def _existing_or_404(self, item_id: Any) -> Any:
        existing = self.gateway.read_one(item_id)
        if existing is None:
            logger.debug("record %s not found", item_id)
            raise NotFound()
        return existing

    def read_many(self, params) -> Page:
        plan = build_query_plan(params)
        if not self.acl.can_read_many():
            raise self._deny("read_many")
        plan = self.hooks.before_read_many(plan)
        page = self.gateway.read(plan)
        return self.hooks.after_read_many(page)

    def read_one(self, item_id: Any) -> Any:
        self.hooks.before_read_one(item_id)
        item = self._existing_or_404(item_id)
        if not self.acl.can_read_one(item):
            raise self._deny("read_one")
        return self.hooks.after_read_one(item)

    def create(self, item: Any) -> Any:
        item = _or_original(self.hooks.before_create(item), item)
        if not self.acl.can_create(item):
            raise self._deny("create")
        created = self.gateway.create(item)
        return self.hooks.after_create(created)

    def update(self, item_id: Any, item: Any) -> Any:
        # The before-hook's result, when it returns one, is what gets authorized and persisted.
        item = _or_original(self.hooks.before_update(item_id, item), item)
        existing = self._existing_or_404(item_id)
        if not self.acl.can_update(existing, item):
            raise self._deny("update")
        setattr(item, self.id_field, getattr(existing, self.id_field))
        updated = self.gateway.update(item)
        return self.hooks.after_update(existing, updated)

    def delete(self, item_id: Any) -> Any:
        self.hooks.before_delete(item_id)
        existing = self._existing_or_404(item_id)
        if not self.acl.can_delete(existing):
            raise self._deny("delete")
        self.gateway.delete(existing)
        return self.hooks.after_delete(existing)

    def apply_batch(
        self,
        create: Iterable[Any] = (),
        update: Iterable[tuple[Any, Any]] = (),
        delete: Iterable[Any] = (),
    ) -> BatchResponse:
        """Run creates, then updates, then deletes; stops at the first failure.

        There is no transaction around the batch: operations that already went
        through before a failure stay applied.
        """
        created = [self.create(item) for item in create]
        updated = [self.update(item_id, item) for item_id, item in update]
        deleted = [self.delete(item_id) for item_id in delete]
        return BatchResponse(create=created, update=updated, delete=deleted)
