"""
Tests for paging estimates
"""

import pytest

from feed_service.pagination import estimate_pagination
from feed_service.schemas import CursorState


@pytest.mark.parametrize("page, has_next, has_previous, expected", [
    (1, False, False, 1),
    (1, True, False, 2),
    (2, True, True, 3),
    (4, False, True, 4),
])
def test_estimated_total_pages(page, has_next, has_previous, expected):
    state = estimate_pagination(page, CursorState(has_next=has_next, has_previous=has_previous))
    assert state.estimated_total_pages == expected
    assert state.is_estimate is True


def test_next_follows_cursor():
    assert estimate_pagination(3, CursorState(has_next=True)).next_enabled is True
    assert estimate_pagination(3, CursorState(has_next=False)).next_enabled is False


def test_previous_needs_flag_and_page_after_first():
    assert estimate_pagination(2, CursorState(has_previous=True)).previous_enabled is True
    assert estimate_pagination(2, CursorState(has_previous=False)).previous_enabled is False
    assert estimate_pagination(1, CursorState(has_previous=True)).previous_enabled is False


def test_estimate_grows_while_paging_forward():
    cursors = [CursorState(has_next=True), CursorState(has_next=True, has_previous=True),
               CursorState(has_next=False, has_previous=True)]
    estimates = [estimate_pagination(page, cursor).estimated_total_pages
                 for page, cursor in enumerate(cursors, start=1)]
    assert estimates == [2, 3, 3]
