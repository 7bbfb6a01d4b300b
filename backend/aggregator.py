from collections import deque

import numpy as np

from models import ScoreResult

SCORE_WINDOW = 30  # ~1 second at 30 fps


class ScoreAggregator:
    """Rolling mean of the last `window` raw scores, one FIFO per metric name."""

    def __init__(self, window: int = SCORE_WINDOW):
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        self.window = window
        self._buffers: dict[str, deque[float]] = {}

    def observe(self, name: str, value: float) -> None:
        buf = self._buffers.get(name)
        if buf is None:
            buf = self._buffers[name] = deque(maxlen=self.window)
        buf.append(value)  # deque evicts the oldest entry past maxlen

    def observe_all(self, result: ScoreResult) -> None:
        for name, value in result.items():
            self.observe(name, value)

    def mean(self, name: str) -> float | None:
        """Mean of the current window, or None if `name` was never observed."""
        buf = self._buffers.get(name)
        if not buf:
            return None
        return float(np.mean(buf))

    def means(self) -> ScoreResult:
        return {name: float(np.mean(buf)) for name, buf in self._buffers.items() if buf}

    def count(self, name: str) -> int:
        return len(self._buffers.get(name, ()))

    def reset(self) -> None:
        self._buffers.clear()
