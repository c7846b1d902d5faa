# This project was developed with assistance from AI tools.
"""Shared schema components."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Paginated(BaseModel, Generic[T]):
    """Page-based list envelope: ``{items, total, page, per_page, pages}``."""

    items: list[T]
    total: int
    page: int
    per_page: int
    pages: int

    @classmethod
    def build(cls, items: list, total: int, page: int, per_page: int) -> "Paginated[T]":
        return cls(
            items=items,
            total=total,
            page=page,
            per_page=per_page,
            pages=math.ceil(total / per_page) if per_page else 0,
        )
