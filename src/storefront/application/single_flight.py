"""Single-flight guard: at most one in-flight operation per key.

Unlike a lock, a second caller is rejected immediately instead of
queued.  A slot can outlive the ``with`` block through ``hold_until``,
which keeps the key busy until a detached task settles.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from storefront.domain.exceptions import SubmissionInProgress

logger = logging.getLogger(__name__)


class SingleFlightGuard:

    def __init__(self) -> None:
        self._in_flight: set[str] = set()
        self._held: set[str] = set()

    def is_busy(self, key: str) -> bool:
        return key in self._in_flight

    @contextmanager
    def acquire(self, key: str) -> Iterator[None]:
        """Claim *key* for the duration of the block.

        Raises SubmissionInProgress if the key is already claimed.  Check
        and claim happen without an await in between, so two coroutines
        can never both get through.
        """
        if key in self._in_flight:
            logger.info("Rejected duplicate submission for session %s", key)
            raise SubmissionInProgress(key)
        self._in_flight.add(key)
        try:
            yield
        finally:
            if key in self._held:
                self._held.discard(key)
            else:
                self._in_flight.discard(key)

    def hold_until(self, key: str, task: asyncio.Future) -> None:
        """Keep *key* claimed after the block exits, until *task* is done.

        Must be called from inside ``acquire(key)``.
        """
        if task.done():
            return
        self._held.add(key)
        task.add_done_callback(lambda _: self._release(key))

    def _release(self, key: str) -> None:
        if key in self._held:
            # Block has not exited yet; its finally clause frees the key.
            self._held.discard(key)
            return
        self._in_flight.discard(key)
        logger.debug("Released detached submission slot for session %s", key)
