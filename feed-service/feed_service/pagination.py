"""
Paging controls derived from cursor flags
"""
from .schemas import CursorState, PaginationState


def estimate_pagination(page: int, cursor: CursorState) -> PaginationState:
    """
    Derive paging controls for the current page

    The backend never reports a total, so `estimated_total_pages` is only
    a lower bound: page + 1 while another page exists, otherwise page.
    """
    if cursor.has_next:
        estimated = page + 1
    elif page == 1:
        estimated = 1
    else:
        estimated = page

    return PaginationState(
        page=page,
        previous_enabled=cursor.has_previous and page > 1,
        next_enabled=cursor.has_next,
        estimated_total_pages=estimated,
        is_estimate=True,
    )
