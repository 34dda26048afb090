from __future__ import annotations

import logging

from sqlalchemy import and_, asc, desc, or_
from sqlalchemy.orm import Query

from crud_engine.core.errors import UnsupportedPredicate
from crud_engine.schemas.query import LIST_OPERATORS, ListValue, Predicate, QueryPlan
from crud_engine.services.serialization import columns_map, primary_key_column

logger = logging.getLogger(__name__)


def _set_clause(col, predicate: Predicate):
    values = predicate.value.as_python()
    if not isinstance(values, list):
        values = [values]
    has_null = any(value is None for value in values)
    concrete = [value for value in values if value is not None]

    if predicate.op == "in":
        clause = col.in_(concrete)
        return or_(clause, col.is_(None)) if has_null else clause
    # NOT IN never matches NULL columns in SQL, so keep them unless null is excluded explicitly.
    clause = col.not_in(concrete)
    return and_(clause, col.is_not(None)) if has_null else or_(clause, col.is_(None))


def _predicate_clause(col, predicate: Predicate):
    if predicate.op in LIST_OPERATORS:
        return _set_clause(col, predicate)
    if isinstance(predicate.value, ListValue):
        raise UnsupportedPredicate(predicate.field, f'operator "{predicate.op}" takes a single value')

    value = predicate.value.as_python()
    if predicate.op == "eq":
        return col.is_(None) if value is None else col == value
    if predicate.op == "neq":
        return col.is_not(None) if value is None else col != value
    if value is None:
        raise UnsupportedPredicate(predicate.field, f'operator "{predicate.op}" cannot compare with null')
    if predicate.op == "gt":
        return col > value
    if predicate.op == "lt":
        return col < value
    if predicate.op == "gte":
        return col >= value
    if predicate.op == "lte":
        return col <= value
    raise UnsupportedPredicate(predicate.field, f'unknown operator "{predicate.op}"')


def apply_query_plan(q: Query, model, plan: QueryPlan) -> Query:
    """Apply the plan's predicates and ordering; paging is left to the caller."""
    columns = columns_map(model)
    for predicate in plan.predicates.values():
        if predicate.field not in columns:
            logger.debug("ignoring filter on unknown field %s.%s", model.__name__, predicate.field)
            continue
        q = q.filter(_predicate_clause(getattr(model, predicate.field), predicate))

    pk_key = primary_key_column(model).key
    pk = getattr(model, pk_key)
    if plan.sort.field not in columns:
        logger.debug("ignoring sort on unknown field %s.%s", model.__name__, plan.sort.field)
        return q.order_by(asc(pk))
    sort_col = getattr(model, plan.sort.field)
    q = q.order_by(asc(sort_col) if plan.sort.direction == "asc" else desc(sort_col))
    if plan.sort.field != pk_key:
        q = q.order_by(asc(pk))
    return q
