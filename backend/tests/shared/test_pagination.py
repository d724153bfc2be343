"""Tests for shared/pagination.py."""

import pytest

from shared.pagination import PageWindow


class TestPageWindow:
    def test_first_page(self):
        window = PageWindow(page=1, page_size=20)
        assert window.offset == 0
        assert window.end == 19

    def test_later_page(self):
        window = PageWindow(page=3, page_size=10)
        assert window.offset == 20
        assert window.end == 29

    @pytest.mark.parametrize("total,expected", [(0, False), (20, False), (21, True), (100, True)])
    def test_has_more(self, total, expected):
        """has_more is true only when rows exist past this page."""
        assert PageWindow(page=1, page_size=20).has_more(total) is expected

    @pytest.mark.parametrize("page,size", [(0, 10), (1, 0), (-1, 5)])
    def test_rejects_invalid_window(self, page, size):
        with pytest.raises(ValueError):
            PageWindow(page=page, page_size=size)
