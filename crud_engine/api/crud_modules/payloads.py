from __future__ import annotations

from typing import Any

from crud_engine.core.errors import InvalidPayload
from crud_engine.services.serialization import columns_map, primary_key_column


def _sanitize_payload(model: type, payload: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidPayload("Request body must be a JSON object")

    columns = columns_map(model)
    pk_key = primary_key_column(model).key

    unknown_fields = sorted(set(payload.keys()) - set(columns.keys()))
    if unknown_fields:
        raise InvalidPayload("Unknown fields: " + ", ".join(unknown_fields))

    cleaned: dict[str, Any] = {}
    for key, value in payload.items():
        column = columns[key]
        if value is None and not column.nullable and key != pk_key:
            raise InvalidPayload(f'Field "{key}" cannot be null')
        cleaned[key] = value

    required_missing: list[str] = []
    for name, column in columns.items():
        if name == pk_key or column.nullable:
            continue
        if column.default is not None or column.server_default is not None:
            continue
        if name not in cleaned:
            required_missing.append(name)
    if required_missing:
        raise InvalidPayload("Missing required fields: " + ", ".join(sorted(required_missing)))

    return cleaned


def _entity_from_payload(model: type, payload: dict[str, Any]) -> Any:
    return model(**_sanitize_payload(model, payload))
