from __future__ import annotations
import logging
import threading
from typing import Iterable, Optional, Tuple

from codegate import config
from codegate.errors import PoolEmpty

log = logging.getLogger(__name__)


class CredentialPool:
    """Fixed, ordered set of backend keys handed out round-robin.

    The key list never changes after construction. The cursor is shared by
    every request thread, so it only moves while holding the lock.
    """

    def __init__(self, credentials: Iterable[str]):
        keys = tuple(k.strip() for k in credentials if k and k.strip())
        if not keys:
            raise PoolEmpty()
        self._keys = keys
        self._cursor = 0
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "CredentialPool":
        return cls(config.load_credentials())

    @property
    def size(self) -> int:
        return len(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def next_with_index(self) -> Tuple[int, str]:
        """Return (index, key) for the next key; both come from the same cursor read."""
        with self._lock:
            idx = self._cursor
            self._cursor = (idx + 1) % len(self._keys)
        log.debug("credentials: assigned key index=%d", idx)
        return idx, self._keys[idx]

    def next(self) -> str:
        return self.next_with_index()[1]

    def __repr__(self) -> str:
        # Never print the keys themselves
        return f"CredentialPool(size={len(self._keys)})"


def load_pool() -> Optional[CredentialPool]:
    """Build the process-wide pool from the environment; None when no keys are set."""
    try:
        return CredentialPool.from_env()
    except PoolEmpty:
        return None
