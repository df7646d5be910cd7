"""Unbounded thread-safe queue of WorkItems.

Workers poll with a timeout instead of waiting for a sentinel: an empty poll
means "nothing to do right now", and the worker ends its loop.
"""

from __future__ import annotations

import queue

from s3upload.models import WorkItem


class WorkQueue:
    """FIFO of WorkItems shared by the engine, its workers and the walker.

    Only this interface touches the underlying storage; callers never iterate
    it directly.
    """

    def __init__(self) -> None:
        self._items: queue.Queue[WorkItem] = queue.Queue()

    def enqueue(self, item: WorkItem) -> None:
        """Add an item. Never blocks; visible to dequeuers immediately."""
        self._items.put_nowait(item)

    def dequeue(self, timeout: float) -> WorkItem | None:
        """Remove and return the head item, waiting up to timeout seconds.

        Returns:
            The next WorkItem, or None if nothing arrived in time.
        """
        try:
            return self._items.get(timeout=timeout)
        except queue.Empty:
            return None

    def peek(self) -> WorkItem | None:
        """Return the head item without removing it, or None if empty."""
        # queue.Queue keeps its deque in .queue, guarded by .mutex
        with self._items.mutex:
            return self._items.queue[0] if self._items.queue else None

    def size(self) -> int:
        """Approximate number of queued items."""
        return self._items.qsize()

    def empty(self) -> bool:
        return self.size() == 0

    def __len__(self) -> int:
        return self.size()
