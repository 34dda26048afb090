from __future__ import annotations

from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

API_FLAG = "__crud_engine_api"


class Page(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: List[T] = []
    total_count: int = Field(default=0, ge=0)
    page_no: int = 0
    page_size: int = 20
    # Projection requested by the plan; not part of the response body.
    select: List[str] = []


class BatchRequest(BaseModel):
    create: List[dict[str, Any]] = []
    update: List[dict[str, Any]] = []
    delete: List[Any] = []


class BatchResponse(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    create: List[Any] = []
    update: List[Any] = []
    delete: List[Any] = []
    api_flag: bool = Field(default=True, alias=API_FLAG, frozen=True)
