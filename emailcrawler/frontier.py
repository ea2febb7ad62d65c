from __future__ import annotations
import threading
from collections import deque
from typing import Iterable

from emailcrawler.errors import FrontierEmpty


# NOTE: this is a QUEUE plus the set of everything that was ever queued.
# try_enqueue is the only way a url gets into the visited set during a crawl.
class Frontier:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queue: deque[str] = deque()
        self._visited: set[str] = set()

    def try_enqueue(self, url: str) -> bool:
        """Queue url unless it was ever queued before. True if it was new."""
        with self._lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            self._queue.append(url)
            return True

    def dequeue(self) -> str:
        """FIFO pop. Raises FrontierEmpty right away instead of waiting for producers."""
        with self._lock:
            try:
                return self._queue.popleft()
            except IndexError:
                raise FrontierEmpty() from None

    def restore(self, pending: Iterable[str], visited: Iterable[str]) -> None:
        """
        Merge saved state into this frontier.

        Used when resuming from a snapshot: visited urls are added as-is and pending
        urls are appended in order (skipping ones already waiting in the queue).
        """
        with self._lock:
            self._visited.update(visited)
            queued = set(self._queue)
            for url in pending:
                if url in queued:
                    continue
                queued.add(url)
                self._visited.add(url)
                self._queue.append(url)

    def pending(self) -> list[str]:
        with self._lock:
            return list(self._queue)

    def visited(self) -> set[str]:
        with self._lock:
            return set(self._visited)

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)
