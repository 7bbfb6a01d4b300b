import logging
import threading
import time

from aggregator import SCORE_WINDOW, ScoreAggregator
from models import FrameEvaluation, PoseLandmarks, StillEvaluation
from scoring import METRIC_HORIZONTAL, compute_all_metrics, horizontal_score_detailed
from smoother import SMOOTH_ALPHA, LandmarkSmoother

logger = logging.getLogger(__name__)

# |manual - computed| upper bounds, best first
AGREEMENT_BANDS = [
    (0.10, "excellent"),
    (0.25, "acceptable"),
    (0.50, "noticeable"),
]
AGREEMENT_TOLERANCE = 0.25


def agreement_band(abs_error: float) -> str:
    for limit, label in AGREEMENT_BANDS:
        if abs_error <= limit:
            return label
    return "mismatch"


class StreamSession:
    """
    Per-stream scoring state: landmark smoother + rolling score window.

    Frames must be fed in capture order. One instance per camera stream;
    never share an instance between streams or with still-image runs.
    """

    def __init__(self, alpha: float = SMOOTH_ALPHA, window: int = SCORE_WINDOW):
        self.smoother = LandmarkSmoother(alpha)
        self.aggregator = ScoreAggregator(window)
        self.frames_seen = 0
        self.last_used = time.monotonic()
        # serialises callers sharing this session (e.g. concurrent requests)
        self.lock = threading.Lock()

    def process(self, frame: PoseLandmarks | None) -> FrameEvaluation:
        self.touch()
        index = self.frames_seen
        self.frames_seen += 1

        if frame is None:
            return FrameEvaluation(
                detected=False,
                frame_index=index,
                averaged=self.aggregator.means(),
            )

        smoothed = self.smoother.update(frame)
        raw = compute_all_metrics(smoothed)
        debug = horizontal_score_detailed(smoothed)
        self.aggregator.observe_all(raw)

        return FrameEvaluation(
            detected=True,
            frame_index=index,
            scores=raw,
            averaged=self.aggregator.means(),
            debug=debug,
        )

    def touch(self) -> None:
        self.last_used = time.monotonic()

    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_used

    def reset(self) -> None:
        self.touch()
        self.smoother.reset()
        self.aggregator.reset()
        self.frames_seen = 0


def evaluate_still(frame: PoseLandmarks, manual_score: float | None = None) -> StillEvaluation:
    """Score a single image directly (no smoothing, no rolling window)."""
    scores = compute_all_metrics(frame)
    debug = horizontal_score_detailed(frame)

    if manual_score is None:
        return StillEvaluation(scores=scores, debug=debug)

    abs_error = abs(manual_score - scores[METRIC_HORIZONTAL])
    logger.info(
        "Still image: computed=%.3f manual=%.2f abs_error=%.3f",
        scores[METRIC_HORIZONTAL], manual_score, abs_error,
    )
    return StillEvaluation(
        scores=scores,
        debug=debug,
        manual_score=manual_score,
        abs_error=abs_error,
        agreement=agreement_band(abs_error),
        within_tolerance=abs_error <= AGREEMENT_TOLERANCE,
    )
