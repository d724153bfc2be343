"""Offset pagination helpers shared by list endpoints."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PageWindow:
    """Offset window for a 1-indexed page."""

    page: int
    page_size: int

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def end(self) -> int:
        """Inclusive index of the last row, as PostgREST's range() expects."""
        return self.offset + self.page_size - 1

    def has_more(self, total: int) -> bool:
        return self.page * self.page_size < total

