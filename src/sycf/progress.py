"""
Progress samples and the rate-limited emitter used while copying.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

ProgressCallback = Callable[[float], None]


@dataclass
class ProgressSample:
    """
    A single completion value.

    Attributes
    ----------
    fraction : float
        Completion in [0.0, 1.0], clamped on construction
    """

    fraction: float

    def __post_init__(self):
        self.fraction = min(max(self.fraction, 0.0), 1.0)

    @classmethod
    def from_bytes(cls, bytes_done: int, total_bytes: int) -> "ProgressSample":
        if total_bytes <= 0:
            return cls(0.0)
        return cls(bytes_done / total_bytes)

    @property
    def percent_text(self) -> str:
        return f"{self.fraction * 100:.1f}%"


class ProgressThrottle:
    """
    Forward job progress to a callback at a bounded rate.

    A sample is emitted once ``bytes_threshold`` new bytes have been
    written or ``interval`` seconds have passed since the last one,
    whichever comes first. Emitted fractions never go backwards.

    Parameters
    ----------
    callback : ProgressCallback | None
        Receives the fraction; None disables reporting
    total_bytes : int
        Size of the whole job
    bytes_threshold : int
        Byte delta that forces a sample
    interval : float
        Time delta (seconds) that forces a sample
    """

    def __init__(
        self,
        callback: ProgressCallback | None,
        total_bytes: int,
        bytes_threshold: int,
        interval: float,
    ):
        self.callback = callback
        self.total_bytes = total_bytes
        self.bytes_threshold = bytes_threshold
        self.interval = interval
        self.last_fraction = 0.0
        self._last_bytes = 0
        self._last_time = time.monotonic()

    def start(self, bytes_done: int) -> None:
        """Restart the throttle window at ``bytes_done`` without emitting."""
        self._last_bytes = bytes_done
        self._last_time = time.monotonic()

    def update(self, bytes_done: int) -> bool:
        """
        Report progress if a threshold was crossed.

        Parameters
        ----------
        bytes_done : int
            Bytes accounted for across the whole job

        Returns
        -------
        bool
            True if a sample was emitted
        """
        if self.total_bytes <= 0:
            return False
        now = time.monotonic()
        if (
            bytes_done - self._last_bytes >= self.bytes_threshold
            or now - self._last_time >= self.interval
        ):
            self.emit(bytes_done)
            return True
        return False

    def emit(self, bytes_done: int) -> None:
        """Emit a sample unconditionally (no-op for an empty job)."""
        if self.total_bytes <= 0:
            return
        self._last_bytes = bytes_done
        self._last_time = time.monotonic()
        self._send(ProgressSample.from_bytes(bytes_done, self.total_bytes).fraction)

    def finish(self) -> None:
        """Emit the terminal 1.0 sample regardless of throttling."""
        self._send(1.0)

    def _send(self, fraction: float) -> None:
        # Monotonic per job
        fraction = max(fraction, self.last_fraction)
        self.last_fraction = fraction
        if self.callback is not None:
            self.callback(fraction)
