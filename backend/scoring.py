"""
Shoulder presentation metrics.

    horizontal_score    - shoulders square to the camera (yaw)
    shoulder_tilt_score - shoulder line level in the image (roll)

Both use only the left/right shoulder landmarks, so they still work when the
face is partly occluded. Every function is pure: degenerate or missing input
yields the metric's sentinel value instead of raising.
"""

import logging
import math

from models import HorizontalScoreDebug, Landmark, LandmarkSnapshot, PoseLandmarks, ScoreResult

logger = logging.getLogger(__name__)

# MediaPipe Pose indices
LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12

VIS_THRESHOLD = 0.3  # at or below this a landmark is unreliable
EPSILON = 1e-6  # shorter vectors are treated as degenerate

METRIC_HORIZONTAL = "horizontalScore"
METRIC_TILT = "shoulderTiltScore"


def is_usable(lm: Landmark | None) -> bool:
    """Landmark exists and its visibility is above VIS_THRESHOLD."""
    return lm is not None and lm.effective_visibility > VIS_THRESHOLD


def _unit(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


def horizontal_score_detailed(lm: PoseLandmarks) -> HorizontalScoreDebug:
    """Yaw score plus the raw terms it was built from.

    score = cos(yaw) * visibility symmetry, where yaw is the angle of the
    shoulder line in the X-Z plane. 1 = square-on, 0 = full profile.
    """
    ls = lm.left_shoulder
    rs = lm.right_shoulder
    if not is_usable(ls) or not is_usable(rs):
        return HorizontalScoreDebug.blank()
    if not math.isfinite(ls.z) or not math.isfinite(rs.z):
        return HorizontalScoreDebug.blank()

    dx = ls.x - rs.x
    dz = ls.z - rs.z
    if not math.isfinite(dx):
        return HorizontalScoreDebug.blank()
    length = math.hypot(dx, dz)
    if length < EPSILON:
        # shoulders coincide in the X-Z plane
        return HorizontalScoreDebug.blank()

    abs_dx = abs(dx)
    abs_dz = abs(dz)
    geom = abs_dx / length  # cos(yaw)
    vis_sym = _unit(1.0 - abs(ls.effective_visibility - rs.effective_visibility))
    angle = math.degrees(math.atan2(abs_dz, abs_dx))

    result = HorizontalScoreDebug(
        score=_unit(geom * vis_sym),
        angle_deg=angle,
        dx=abs_dx,
        dz=abs_dz,
        vis_sym=vis_sym,
        left=LandmarkSnapshot.of(ls),
        right=LandmarkSnapshot.of(rs),
    )
    logger.debug(
        "horizontal: score=%.4f angle=%.2f dx=%.4f dz=%.4f visSym=%.3f",
        result.score, angle, abs_dx, abs_dz, vis_sym,
    )
    return result


def horizontal_score(lm: PoseLandmarks) -> float:
    return horizontal_score_detailed(lm).score


def shoulder_tilt_score(lm: PoseLandmarks) -> float:
    """Roll score: 1 when the shoulder line is horizontal, 0 when vertical."""
    ls = lm.left_shoulder
    rs = lm.right_shoulder
    if not is_usable(ls) or not is_usable(rs):
        return 0.0

    dx = ls.x - rs.x
    dy = ls.y - rs.y
    if not (math.isfinite(dx) and math.isfinite(dy)):
        return 0.0
    if abs(dx) < EPSILON and abs(dy) < EPSILON:
        return 0.0

    angle = math.atan2(abs(dy), abs(dx))  # 0 .. pi/2
    return _unit(1.0 - angle / (math.pi / 2))


def shoulder_squareness(lm: PoseLandmarks) -> float:
    """Geometric mean of the yaw and roll scores; a low score on either axis dominates."""
    q = math.sqrt(horizontal_score(lm) * shoulder_tilt_score(lm))
    return 0.0 if math.isnan(q) else q


def compute_all_metrics(lm: PoseLandmarks) -> ScoreResult:
    # Squareness is deliberately left out; callers that need it use
    # shoulder_squareness() directly.
    return {
        METRIC_HORIZONTAL: horizontal_score(lm),
        METRIC_TILT: shoulder_tilt_score(lm),
    }
