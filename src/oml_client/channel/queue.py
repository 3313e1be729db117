from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import List, Union


@dataclass(frozen=True)
class Shutdown:
    """Control item telling the sender to finish and close its sink."""


SHUTDOWN = Shutdown()

Item = Union[str, Shutdown]


class OutgoingQueue:
    """Unbounded FIFO of data lines with an explicit shutdown control item.

    Safe for many producer threads and one consumer thread. ``put`` never
    blocks; ``next_batch`` blocks until at least one item is available and
    then drains everything already queued.
    """

    def __init__(self) -> None:
        self._q: queue.SimpleQueue[Item] = queue.SimpleQueue()

    @property
    def size(self) -> int:
        return self._q.qsize()

    def put(self, line: str) -> None:
        self._q.put(line)

    def shutdown(self) -> None:
        self._q.put(SHUTDOWN)

    def next_batch(self) -> tuple[List[str], bool]:
        """Block for one item, then drain whatever is already queued.

        Returns ``(lines, active)``; ``active`` is False once the shutdown
        item has been seen. Items queued after shutdown are left in place.
        """
        lines: List[str] = []
        item = self._q.get()
        while True:
            if isinstance(item, Shutdown):
                return lines, False
            lines.append(item)
            try:
                item = self._q.get_nowait()
            except queue.Empty:
                return lines, True
