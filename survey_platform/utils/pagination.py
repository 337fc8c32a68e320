"""Optional page-based pagination: no page means the full result set."""
from typing import Optional

from sqlalchemy.orm import Query

from survey_platform.config import get_settings


def paginate(query: Query, page: Optional[int]) -> Query:
    if not page:
        return query
    page_size = get_settings().ITEMS_PER_PAGE
    return query.offset(page_size * (page - 1)).limit(page_size)
