# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Description: CancellationToken
# -----------------------------------------------------------------------------
import threading
from typing import Optional


class CancellationToken:
    """Caller-owned flag that stops an in-flight embed/embed_batch from waiting."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to `timeout`; returns True early if cancelled."""
        return self._event.wait(timeout)
