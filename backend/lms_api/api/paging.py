"""
List endpoint helpers: page_number/page_size validation, case-insensitive substring filter, sort by a
whitelisted column. Unknown sort keys fall back to id so pages are stable.
"""
from fastapi import HTTPException, Query, status
from sqlalchemy import or_

MAX_PAGE_SIZE = 100


class PageParams:
    """Dependency collecting pageNumber, pageSize, sortBy, filter from the query string."""

    def __init__(
        self,
        page_number: int = Query(1, alias="pageNumber"),
        page_size: int = Query(10, alias="pageSize"),
        sort_by: str | None = Query(None, alias="sortBy"),
        filter_: str | None = Query(None, alias="filter"),
    ):
        if page_number < 1 or page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid pageNumber or pageSize (pageNumber >= 1, 1 <= pageSize <= {MAX_PAGE_SIZE})",
            )
        self.page_number = page_number
        self.page_size = page_size
        self.sort_by = (sort_by or "").strip().lower() or None
        self.filter = (filter_ or "").strip() or None


def apply_filter(query, text: str | None, *columns):
    if not text:
        return query
    pattern = f"%{text}%"
    return query.filter(or_(*(col.ilike(pattern) for col in columns)))


def apply_sort(query, sort_by: str | None, columns: dict, default):
    return query.order_by(columns.get(sort_by, default), default)


def paginate(query, page: PageParams) -> tuple[int, list]:
    """Return (total rows matching, rows on this page)."""
    total = query.order_by(None).count()
    items = query.offset((page.page_number - 1) * page.page_size).limit(page.page_size).all()
    return total, items
