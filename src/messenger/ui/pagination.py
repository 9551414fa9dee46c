from enum import Enum
from typing import Generic, Iterable, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10


class NavState(Enum):
    BROWSING = "browsing"
    SELECTED = "selected"
    TERMINATED = "terminated"


class PageView(Generic[T]):
    """
    Fixed-size window over an ordered list.

    Items keep their absolute position as display index, so the user picks an
    item by typing the number printed next to it regardless of the page.
    Going back from the first page ends the browsing session.
    """
    def __init__(self, items: Iterable[T], page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.items: list[T] = list(items)
        self.page_size = page_size
        self.offset = 0
        self.state = NavState.BROWSING

    @property
    def end(self) -> int:
        return min(self.offset + self.page_size, len(self.items))

    @property
    def has_next(self) -> bool:
        return self.offset + self.page_size < len(self.items)

    @property
    def terminated(self) -> bool:
        return self.state == NavState.TERMINATED

    def render(self) -> list[tuple[int, T]]:
        return [(index, self.items[index]) for index in range(self.offset, self.end)]

    def next(self) -> bool:
        """
        Returns False, leaving the offset unchanged, on the last page.
        """
        if not self.has_next:
            return False
        self.offset += self.page_size
        return True

    def back(self) -> bool:
        """
        Returns False when already on the first page; the view is then terminated.
        """
        if self.offset == 0:
            self.state = NavState.TERMINATED
            return False
        self.offset = max(0, self.offset - self.page_size)
        return True

    def is_visible(self, index: int) -> bool:
        return self.offset <= index < self.end

    def select(self, index: int) -> T | None:
        if not self.is_visible(index):
            return None
        self.state = NavState.SELECTED
        return self.items[index]

    def resume(self) -> None:
        self.state = NavState.BROWSING

    def reload(self, items: Iterable[T]) -> None:
        """
        Replaces the items after a refresh, stepping back while the current
        page would be empty.
        """
        self.items = list(items)
        while self.offset > 0 and self.offset >= len(self.items):
            self.offset -= self.page_size
        self.offset = max(0, self.offset)
        self.state = NavState.BROWSING


class MultiSelectView(PageView[T]):
    """
    Picks several items: a selected item leaves the list at once so it cannot
    be chosen twice, and finish() hands back everything chosen so far.
    """
    def __init__(self, items: Iterable[T], page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(items, page_size)
        self.chosen: list[T] = []

    def select(self, index: int) -> T | None:
        item = super().select(index)
        if item is None:
            return None
        del self.items[index]
        self.chosen.append(item)
        self.reload(self.items)
        return item

    def finish(self) -> list[T]:
        self.state = NavState.TERMINATED
        return list(self.chosen)
