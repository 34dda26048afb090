from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from crud_engine.db.session import get_db
from crud_engine.schemas.envelopes import BatchRequest
from crud_engine.services.acl import ACL, DefaultACL
from crud_engine.services.gateway import SqlAlchemyGateway
from crud_engine.services.hooks import DefaultHooks, Hooks
from crud_engine.services.orchestrator import ResourceOrchestrator
from crud_engine.services.serialization import primary_key_column

from .service import (
    batch_service,
    create_service,
    delete_service,
    read_many_service,
    read_one_service,
    update_service,
)


def _default_acl() -> ACL:
    return DefaultACL()


def _default_hooks() -> Hooks:
    return DefaultHooks()


def build_resource_router(
    model: type,
    *,
    acl_provider: Callable[..., ACL] | None = None,
    hooks_provider: Callable[..., Hooks] | None = None,
) -> APIRouter:
    """Expose list/get/create/replace/delete (plus batch) for one mapped model.

    ``acl_provider`` and ``hooks_provider`` are FastAPI dependencies, so they
    may themselves depend on ``get_db`` or the current principal.
    """
    id_field = primary_key_column(model).key

    def get_orchestrator(
        db: Session = Depends(get_db),
        acl: ACL = Depends(acl_provider or _default_acl),
        hooks: Hooks = Depends(hooks_provider or _default_hooks),
    ) -> ResourceOrchestrator:
        return ResourceOrchestrator(SqlAlchemyGateway(db, model), acl=acl, hooks=hooks, id_field=id_field)

    router = APIRouter()

    @router.get("/")
    def read_many(request: Request, orchestrator: ResourceOrchestrator = Depends(get_orchestrator)):
        return read_many_service(orchestrator, request.query_params.multi_items())

    @router.post("/batch")
    def batch(payload: BatchRequest, orchestrator: ResourceOrchestrator = Depends(get_orchestrator)):
        return batch_service(orchestrator, model, payload)

    @router.get("/{row_id}")
    def read_one(row_id: str, orchestrator: ResourceOrchestrator = Depends(get_orchestrator)):
        return read_one_service(orchestrator, model, row_id)

    @router.post("/", status_code=201)
    def create(payload: dict[str, Any], orchestrator: ResourceOrchestrator = Depends(get_orchestrator)):
        return create_service(orchestrator, model, payload)

    @router.put("/{row_id}")
    def update(row_id: str, payload: dict[str, Any], orchestrator: ResourceOrchestrator = Depends(get_orchestrator)):
        return update_service(orchestrator, model, row_id, payload)

    @router.delete("/{row_id}")
    def delete(row_id: str, orchestrator: ResourceOrchestrator = Depends(get_orchestrator)):
        return delete_service(orchestrator, model, row_id)

    return router
