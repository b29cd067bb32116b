"""Abstract base class for all bit sources."""

from abc import ABC, abstractmethod

import numpy as np


class BitSource(ABC):
    """A stream of random bits consumed by the checks.

    Every source must implement ``next_bit`` and ``next_int``. Each call
    consumes randomness permanently; sources are neither seekable nor
    replayable, and are not safe to share between threads.
    """

    name: str = "unnamed"
    description: str = ""

    @abstractmethod
    def next_bit(self) -> bool:
        """Return the next fair bit."""
        ...

    @abstractmethod
    def next_int(self, max_value: int) -> int:
        """Return a uniform integer in ``[0, max_value)``."""
        ...

    # ── helpers available to callers ──

    def bits(self, n: int) -> np.ndarray:
        """Draw the next *n* bits as a 1-D uint8 array of 0/1 values.

        Subclasses may override this with a faster path, provided the
        sequence is identical to *n* successive ``next_bit`` calls.
        """
        out = np.empty(n, dtype=np.uint8)
        for i in range(n):
            out[i] = self.next_bit()
        return out

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
