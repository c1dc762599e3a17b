from pydantic import BaseModel
from typing import Generic, List, TypeVar
import math

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int


class DataResponse(BaseModel, Generic[T]):
    data: T


class PageResponse(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


class Deleted(BaseModel):
    success: bool = True


def build_pagination(page: int, per_page: int, total: int) -> Pagination:
    return Pagination(
        page=max(page, 1),
        per_page=per_page,
        total=total,
        total_pages=math.ceil(total / per_page) if per_page else 0,
    )


def clamp_per_page(per_page: int, maximum: int) -> int:
    return max(1, min(per_page, maximum))


def page_offset(page: int, per_page: int) -> int:
    # Pages below 1 read as the first page
    return (max(page, 1) - 1) * per_page
