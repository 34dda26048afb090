"""Turns flat query-string parameters into a :class:`QueryPlan`.

Grammar of a filter value::

    <raw>                  implicit equality, raw string kept verbatim
    <op>:<tok>[,<tok>...]  explicit operator, tokens decoded one by one

A token is a double-quoted string, the literal ``null`` or a base-10 integer.
``in``/``nin`` always get a list; every other operator gets a scalar when a
single token is given and a list otherwise.

Parsing is strict: any malformed filter or paging control raises
:class:`FilterParseError` naming the offending key.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from crud_engine.core.config import settings
from crud_engine.core.errors import FilterParseError
from crud_engine.schemas.query import (
    LIST_OPERATORS,
    OPERATORS,
    IntValue,
    ListValue,
    NullValue,
    Predicate,
    QueryPlan,
    SortSpec,
    StringValue,
)

PAGE_NO_KEY = "page_no"
PAGE_SIZE_KEY = "page_size"
SORT_KEY = "sort_by"
SELECT_KEY = "select"
RESERVED_KEYS = frozenset({PAGE_NO_KEY, PAGE_SIZE_KEY, SORT_KEY, SELECT_KEY})

DEFAULT_SORT = SortSpec(field="id", direction="asc")

_INT_RE = re.compile(r"^[+-]?[0-9]+$")

# Integer tokens and paging controls must fit a signed 64-bit column.
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1
_INT_MAX_DIGITS = len(str(INT_MAX))


def _iter_params(params) -> Iterable[tuple[str, str]]:
    if isinstance(params, Mapping):
        return params.items()
    return params


def _to_int(key: str, text: str) -> int:
    if len(text.lstrip("+-").lstrip("0")) > _INT_MAX_DIGITS:
        raise FilterParseError(key, "integer out of range")
    value = int(text)
    if not INT_MIN <= value <= INT_MAX:
        raise FilterParseError(key, "integer out of range")
    return value


def _decode_token(key: str, token: str):
    if token.startswith('"'):
        if len(token) < 2 or not token.endswith('"'):
            raise FilterParseError(key, f"unterminated string {token!r}")
        return StringValue(value=token[1:-1])
    if token == "null":
        return NullValue()
    if not _INT_RE.fullmatch(token):
        raise FilterParseError(key, f"expected integer, quoted string or null, got {token!r}")
    return IntValue(value=_to_int(key, token))


def parse_predicate(key: str, raw: str) -> Predicate:
    if ":" not in raw:
        return Predicate(field=key, op="eq", value=StringValue(value=raw))

    op, rhs = raw.split(":", 1)
    if op not in OPERATORS:
        raise FilterParseError(key, f"unknown operator {op!r}")

    decoded = [_decode_token(key, token) for token in rhs.split(",")]
    if op in LIST_OPERATORS or len(decoded) > 1:
        value = ListValue(items=decoded)
    else:
        value = decoded[0]
    return Predicate(field=key, op=op, value=value)


def parse_filters(params) -> dict[str, Predicate]:
    predicates: dict[str, Predicate] = {}
    for key, raw in _iter_params(params):
        if key in RESERVED_KEYS:
            continue
        predicates[key] = parse_predicate(key, str(raw))
    return predicates


def parse_sort(raw: str | None) -> SortSpec:
    if not raw or ":" not in raw:
        return DEFAULT_SORT
    field, direction = raw.split(":", 1)
    if not field or direction not in {"asc", "desc"}:
        return DEFAULT_SORT
    return SortSpec(field=field, direction=direction)


def _parse_int(key: str, raw: str, *, minimum: int, maximum: int | None = None) -> int:
    text = str(raw).strip()
    if not _INT_RE.fullmatch(text):
        raise FilterParseError(key, f"expected integer, got {raw!r}")
    value = _to_int(key, text)
    if value < minimum:
        raise FilterParseError(key, f"must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise FilterParseError(key, f"must be <= {maximum}")
    return value


def _merge_select(select: list[str], raw: str) -> None:
    for name in raw.split(","):
        name = name.strip()
        if name and name not in select:
            select.append(name)


def build_query_plan(params) -> QueryPlan:
    """Parse a mapping (or ordered ``(key, value)`` pairs) into a QueryPlan.

    Repeated keys are visited in order; for filters and paging controls the
    last occurrence wins, while ``select`` values accumulate.
    """
    pairs = list(_iter_params(params))
    page_no = 0
    page_size = settings.DEFAULT_PAGE_SIZE
    sort_raw = settings.DEFAULT_SORT
    select: list[str] = []

    for key, raw in pairs:
        if key == PAGE_NO_KEY:
            page_no = _parse_int(key, raw, minimum=0)
        elif key == PAGE_SIZE_KEY:
            page_size = _parse_int(key, raw, minimum=1, maximum=settings.MAX_PAGE_SIZE)
        elif key == SORT_KEY:
            sort_raw = raw
        elif key == SELECT_KEY:
            _merge_select(select, str(raw))

    if page_no * page_size > INT_MAX:
        raise FilterParseError(PAGE_NO_KEY, "page offset out of range")

    return QueryPlan(
        predicates=parse_filters(pairs),
        page_no=page_no,
        page_size=page_size,
        sort=parse_sort(sort_raw),
        select=select,
    )
