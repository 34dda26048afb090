from __future__ import annotations

from typing import Any

from sqlalchemy import inspect as sa_inspect

from crud_engine.core.errors import InvalidPayload
from crud_engine.schemas.envelopes import API_FLAG, BatchRequest, Page
from crud_engine.services.orchestrator import ResourceOrchestrator
from crud_engine.services.serialization import coerce_identifier, row_to_dict, serialize_value

from .payloads import _entity_from_payload


def _to_payload(result: Any, select: list[str] | None = None) -> Any:
    if sa_inspect(result, raiseerr=False) is not None:
        return row_to_dict(result, select)
    if isinstance(result, Page):
        return {
            "items": [_to_payload(item, result.select) for item in result.items],
            "total_count": result.total_count,
            "page_no": result.page_no,
            "page_size": result.page_size,
        }
    return serialize_value(result)


def read_many_service(orchestrator: ResourceOrchestrator, params) -> Any:
    return _to_payload(orchestrator.read_many(params))


def read_one_service(orchestrator: ResourceOrchestrator, model: type, row_id: str) -> Any:
    return _to_payload(orchestrator.read_one(coerce_identifier(model, row_id)))


def create_service(orchestrator: ResourceOrchestrator, model: type, payload: dict[str, Any]) -> Any:
    return _to_payload(orchestrator.create(_entity_from_payload(model, payload)))


def update_service(orchestrator: ResourceOrchestrator, model: type, row_id: str, payload: dict[str, Any]) -> Any:
    item_id = coerce_identifier(model, row_id)
    return _to_payload(orchestrator.update(item_id, _entity_from_payload(model, payload)))


def delete_service(orchestrator: ResourceOrchestrator, model: type, row_id: str) -> Any:
    return _to_payload(orchestrator.delete(coerce_identifier(model, row_id)))


def batch_service(orchestrator: ResourceOrchestrator, model: type, batch: BatchRequest) -> dict[str, Any]:
    id_field = orchestrator.id_field
    updates = []
    for payload in batch.update:
        if payload.get(id_field) is None:
            raise InvalidPayload(f'Update entries require "{id_field}"')
        updates.append((coerce_identifier(model, payload[id_field]), _entity_from_payload(model, payload)))
    response = orchestrator.apply_batch(
        create=[_entity_from_payload(model, payload) for payload in batch.create],
        update=updates,
        delete=[coerce_identifier(model, row_id) for row_id in batch.delete],
    )
    return {
        "create": [_to_payload(item) for item in response.create],
        "update": [_to_payload(item) for item in response.update],
        "delete": [_to_payload(item) for item in response.delete],
        API_FLAG: response.api_flag,
    }
