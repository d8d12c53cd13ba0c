# utils/recency.py
import random
from collections import deque
from typing import Iterable, Iterator, Optional

DEFAULT_HISTORY_SIZE = 50


class RecencyBuffer:
    """
    Bounded, insertion-ordered list of recently sent filenames.
    Appending past capacity drops the oldest entry (FIFO, not LRU).
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._items = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen

    def append(self, filename: str):
        self._items.append(filename)

    def clear(self):
        self._items.clear()

    def snapshot(self) -> list:
        return list(self._items)

    def __contains__(self, filename) -> bool:
        return filename in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)


def select_image(snapshot: Iterable[str], history: Iterable[str], rng=random) -> Optional[str]:
    """Pick one filename from snapshot that is not in history. None means exhausted."""
    candidates = sorted(set(snapshot) - set(history))
    if not candidates:
        return None
    return rng.choice(candidates)
