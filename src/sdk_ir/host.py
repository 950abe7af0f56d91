"""Serialization of regeneration runs for long-running hosts.

A watch-mode host calls `RunSerializer.submit` for every change it sees.
At most one run is in flight; changes arriving meanwhile are coalesced
into a single follow-up run.
"""

import logging
import threading
from typing import Callable, Hashable

logger = logging.getLogger(__name__)


class RunSerializer:
    """Runs `run(changes)` for submitted changes, one run at a time.

    `submit` returns True when the caller's thread performed the run(s),
    False when the change was queued behind a run already in progress.
    """

    def __init__(self, run: Callable[[list], object]):
        self._run = run
        self._lock = threading.Lock()
        self._pending: dict[Hashable, None] = {}
        self._running = False
        self.completed_runs = 0

    @property
    def running(self) -> bool:
        return self._running

    def submit(self, change: Hashable) -> bool:
        with self._lock:
            self._pending[change] = None
            if self._running:
                logger.debug("Run in progress, coalescing change %r", change)
                return False
            self._running = True

        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._running = False
                        return True
                    changes = list(self._pending)
                    self._pending.clear()
                logger.info("Starting run for %d change(s)", len(changes))
                self._run(changes)
                self.completed_runs += 1
        except BaseException:
            with self._lock:
                self._running = False
            raise
