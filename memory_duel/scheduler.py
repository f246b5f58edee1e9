import heapq
import itertools
from typing import Callable


class VirtualClock:
    """Deterministic timer queue.

    Callbacks scheduled with call_later run when the clock is advanced past
    their due time, in due order (ties run in scheduling order). Callbacks
    may schedule further callbacks, which run in the same advance if they
    fall due. Nothing can be cancelled once scheduled.

    The interactive match advances the clock by the real frame time, tests
    and simulations advance it explicitly.
    """

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_later(self, delay: float, callback: Callable, *args):
        if delay < 0:
            raise ValueError(f"Delay must be non-negative, got {delay}")
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), callback, args))

    def _run_next(self):
        due, _, callback, args = heapq.heappop(self._queue)
        self.now = max(self.now, due)
        callback(*args)

    def advance(self, dt: float):
        until = self.now + dt
        while self._queue and self._queue[0][0] <= until:
            self._run_next()
        self.now = until

    def run_until(self, predicate: Callable[[], bool], limit: float = float('inf')) -> bool:
        """Run callbacks one at a time until predicate() holds.

        Returns False if the queue runs dry or the next callback is due after
        `limit` time units from now, with the predicate still false.
        """
        until = self.now + limit
        while not predicate():
            if not self._queue or self._queue[0][0] > until:
                return False
            self._run_next()
        return True

    def run_until_idle(self):
        while self._queue:
            self._run_next()
