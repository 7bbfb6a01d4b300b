import logging

from models import Landmark, PoseLandmarks

logger = logging.getLogger(__name__)

SMOOTH_ALPHA = 0.2  # weight of the newest sample


class LandmarkSmoother:
    """
    Exponential moving average over landmark positions for one session.

    Only x/y/z are averaged; visibility is taken verbatim from the newest
    frame. Slots missing from a frame keep their last smoothed value.
    """

    def __init__(self, alpha: float = SMOOTH_ALPHA):
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"alpha must be in [0, 1], got {alpha}")
        self.alpha = alpha
        self._state: PoseLandmarks | None = None

    @property
    def state(self) -> PoseLandmarks | None:
        return self._state

    def reset(self) -> None:
        logger.debug("Landmark smoother reset")
        self._state = None

    def update(self, raw: PoseLandmarks) -> PoseLandmarks:
        if self._state is None:
            self._state = raw
            return raw

        updates = {}
        for name, p in raw.present():
            prev = getattr(self._state, name)
            updates[name] = p if prev is None else self._blend(prev, p)

        self._state = self._state.model_copy(update=updates)
        return self._state

    def _blend(self, prev: Landmark, p: Landmark) -> Landmark:
        a = self.alpha
        return Landmark(
            x=a * p.x + (1 - a) * prev.x,
            y=a * p.y + (1 - a) * prev.y,
            z=a * p.z + (1 - a) * prev.z,
            visibility=p.visibility,
        )
