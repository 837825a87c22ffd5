"""Cancellation scope for external command execution.

A scope bundles a cancel flag and an optional deadline. It is created once
per invocation and passed down to every external command, so a signal
handler or a caller-side timeout can stop whatever process is in flight.
"""

import threading
import time
from dataclasses import dataclass, field


@dataclass
class CancelScope:
    """Cancellation flag plus optional monotonic deadline.

    Attributes:
        deadline: time.monotonic() value after which the scope is expired
    """

    deadline: float | None = None
    _event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, seconds: float | None) -> "CancelScope":
        """Create a scope that expires ``seconds`` from now.

        Args:
            seconds: Time budget, or None for no deadline

        Returns:
            New CancelScope
        """
        if seconds is None:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        """Request cancellation. Safe to call from any thread."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        """True once the scope is cancelled or past its deadline."""
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds left until the deadline (never negative), or None."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())
