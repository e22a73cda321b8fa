import math

from pydantic import BaseModel


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_records: int
    has_prev: bool
    has_next: bool
    prev_page: int
    next_page: int

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / page_size) if page_size else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_records=total,
            has_prev=page > 1,
            has_next=page < total_pages,
            prev_page=page - 1,
            next_page=page + 1,
        )
