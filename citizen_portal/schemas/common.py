"""Shared schema building blocks"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataType = TypeVar("DataType")


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self, **kwargs: Any) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", **kwargs)


class Envelope(BaseModel, Generic[DataType]):
    success: bool = True
    data: DataType | None = None
    message: str | None = None


class Pagination(CamelModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0
