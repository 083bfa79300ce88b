"""
URL frontier shared by the crawler's worker threads.

The frontier is a bounded FIFO of work items plus a count of items that
have been popped but not yet completed. Together they decide when a crawl
is drained: the queue is empty and no worker can push anything new.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Set


class FrontierClosedError(RuntimeError):
    """Raised when pushing onto a frontier that has been closed."""


@dataclass(frozen=True)
class WorkItem:
    """A URL waiting to be crawled and its distance from the seed."""
    url: str
    depth: int

    def __post_init__(self):
        if self.depth < 1:
            raise ValueError(f"depth must be at least 1, got {self.depth}")

    def child(self, url: str) -> 'WorkItem':
        """Work item for a link discovered on this page."""
        return WorkItem(url=url, depth=self.depth + 1)


class VisitedSet:
    """URLs already claimed by a worker during one crawl."""

    def __init__(self):
        self._lock = threading.Lock()
        self._urls: Set[str] = set()

    def try_claim(self, url: str) -> bool:
        """
        Claim a URL for processing.

        Returns True for exactly one caller per URL; every later or
        concurrent caller gets False.
        """
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)


class FrontierQueue:
    """
    Bounded work queue with drain detection.

    Every item returned by pop() must be matched by one task_done() once the
    worker has pushed everything it discovered from that item.
    """

    def __init__(self, capacity: int = 100, consumers: Optional[int] = None):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if consumers is not None and consumers < 1:
            raise ValueError("consumers must be at least 1")

        self.capacity = capacity
        self.consumers = consumers
        self.logger = logging.getLogger(__name__)

        self._items: Deque[WorkItem] = deque()
        self._cond = threading.Condition(threading.Lock())
        self._in_flight = 0
        self._blocked_producers = 0
        self._closed = False

    def push(self, item: WorkItem):
        """
        Add an item, blocking while the queue is full.

        When the queue knows its consumer count and every consumer is blocked
        here, nobody is left to pop, so the last of them is let through past
        capacity. Without a consumer count the bound is strict.
        """
        with self._cond:
            if self._closed:
                raise FrontierClosedError(f"Cannot push {item.url}: frontier is closed")

            self._blocked_producers += 1
            try:
                while (len(self._items) >= self.capacity
                       and not self._closed
                       and not self._all_consumers_blocked()):
                    self._cond.wait()
            finally:
                self._blocked_producers -= 1

            if self._closed:
                raise FrontierClosedError(f"Cannot push {item.url}: frontier is closed")

            if len(self._items) >= self.capacity:
                self.logger.debug(f"All workers blocked on a full frontier, admitting {item.url}")

            self._items.append(item)
            self._cond.notify_all()

    def _all_consumers_blocked(self) -> bool:
        # Caller holds the lock; a consumer only pushes while an item is in flight
        return (self.consumers is not None
                and self._blocked_producers >= self.consumers)

    def pop(self) -> Optional[WorkItem]:
        """
        Take the next item, blocking while the queue is empty.

        Returns None once the queue has been closed and drained.
        """
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()

            if not self._items:
                return None

            item = self._items.popleft()
            self._in_flight += 1
            self._cond.notify_all()
            return item

    def task_done(self):
        """Signal that one popped item has been fully processed."""
        with self._cond:
            if self._in_flight <= 0:
                raise ValueError("task_done() called more times than items were popped")
            self._in_flight -= 1
            self._cond.notify_all()

    def wait_until_drained(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the queue is empty and no popped item is outstanding.

        Returns False if the timeout expired first.
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._items and self._in_flight == 0,
                timeout=timeout
            )

    def close(self):
        """Close the queue and release every worker blocked in pop()."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def qsize(self) -> int:
        with self._cond:
            return len(self._items)

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed
