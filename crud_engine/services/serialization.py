from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy.inspection import inspect as sa_inspect

from crud_engine.core.errors import InvalidPayload
from crud_engine.services.filter_parser import INT_MAX, INT_MIN


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def columns_map(model: type) -> dict[str, Any]:
    mapper = sa_inspect(model)
    return {column.key: column for column in mapper.columns}


def row_to_dict(row: Any, select: Iterable[str] | None = None) -> dict[str, Any]:
    """Serialize a mapped row; ``select`` narrows the columns, unknown names are ignored."""
    mapper = sa_inspect(type(row))
    wanted = set(select or ())
    return {
        column.key: serialize_value(getattr(row, column.key))
        for column in mapper.columns
        if not wanted or column.key in wanted
    }


def primary_key_column(model: type):
    pk = sa_inspect(model).primary_key
    if len(pk) != 1:
        raise InvalidPayload("Only single-column primary keys are supported")
    return pk[0]


def coerce_identifier(model: type, raw: Any) -> Any:
    pk_column = primary_key_column(model)
    try:
        python_type = pk_column.type.python_type
    except NotImplementedError:
        python_type = str
    if python_type is int:
        try:
            value = raw if isinstance(raw, int) else int(str(raw).strip())
        except ValueError:
            raise InvalidPayload(f"Invalid identifier {raw!r}")
        if not INT_MIN <= value <= INT_MAX:
            raise InvalidPayload(f"Invalid identifier {raw!r}")
        return value
    if isinstance(raw, python_type):
        return raw
    text = str(raw).strip()
    if python_type is uuid.UUID:
        try:
            return uuid.UUID(text)
        except ValueError:
            raise InvalidPayload(f"Invalid identifier {raw!r}")
    return text
