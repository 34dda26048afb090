from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Op = Literal["eq", "neq", "in", "nin", "gt", "lt", "gte", "lte"]
Dir = Literal["asc", "desc"]

OPERATORS = frozenset({"eq", "neq", "in", "nin", "gt", "lt", "gte", "lte"})
# Operators whose right-hand side is always a list, even with one element.
LIST_OPERATORS = frozenset({"in", "nin"})
COMPARISON_OPERATORS = frozenset({"gt", "lt", "gte", "lte"})


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class StringValue(_Frozen):
    kind: Literal["string"] = "string"
    value: str

    def as_python(self) -> Any:
        return self.value


class IntValue(_Frozen):
    kind: Literal["int"] = "int"
    value: int

    def as_python(self) -> Any:
        return self.value


class NullValue(_Frozen):
    kind: Literal["null"] = "null"

    def as_python(self) -> Any:
        return None


Scalar = Annotated[Union[StringValue, IntValue, NullValue], Field(discriminator="kind")]


class ListValue(_Frozen):
    kind: Literal["list"] = "list"
    items: List[Scalar]

    def as_python(self) -> Any:
        return [item.as_python() for item in self.items]


PredicateValue = Annotated[Union[StringValue, IntValue, NullValue, ListValue], Field(discriminator="kind")]


class Predicate(_Frozen):
    field: str
    op: Op
    value: PredicateValue


class SortSpec(_Frozen):
    field: str = "id"
    direction: Dir = "asc"


class QueryPlan(_Frozen):
    """Structured form of a list request: filters, paging, ordering and projection."""

    predicates: Dict[str, Predicate] = {}
    page_no: int = Field(default=0, ge=0)
    page_size: int = Field(default=20, ge=1)
    sort: SortSpec = SortSpec()
    select: List[str] = []
