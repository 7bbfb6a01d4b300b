import math
from collections.abc import Iterator, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Landmark(BaseModel):
    """One observed body joint. x/y normalised to the frame, z relative depth."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float
    visibility: float | None = None  # raw, as reported by the pose source

    @property
    def effective_visibility(self) -> float:
        # missing visibility means "fully visible"
        return 1.0 if self.visibility is None else self.visibility


# MediaPipe Pose indices consumed downstream -> slot name
LANDMARK_SLOTS: dict[int, str] = {
    0: "nose",
    2: "left_eye",
    5: "right_eye",
    11: "left_shoulder",
    12: "right_shoulder",
}


class PoseLandmarks(BaseModel):
    """Closed set of optional landmark slots for a single detected pose."""

    model_config = ConfigDict(frozen=True)

    nose: Landmark | None = None
    left_eye: Landmark | None = None
    right_eye: Landmark | None = None
    left_shoulder: Landmark | None = None
    right_shoulder: Landmark | None = None

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> "PoseLandmarks":
        """Build from an index -> landmark mapping; unknown indices are dropped."""
        slots = {}
        for idx, lm in mapping.items():
            name = LANDMARK_SLOTS.get(int(idx))
            if name is None or lm is None:
                continue
            slots[name] = lm if isinstance(lm, Landmark) else Landmark.model_validate(lm)
        return cls(**slots)

    @classmethod
    def from_sequence(cls, landmarks: Sequence) -> "PoseLandmarks":
        """Build from a full per-index landmark list (list position = index)."""
        return cls.from_mapping(dict(enumerate(landmarks)))

    def get(self, index: int) -> Landmark | None:
        name = LANDMARK_SLOTS.get(index)
        return getattr(self, name) if name else None

    def present(self) -> Iterator[tuple[str, Landmark]]:
        for name in LANDMARK_SLOTS.values():
            lm = getattr(self, name)
            if lm is not None:
                yield name, lm

    def to_mapping(self) -> dict[int, Landmark]:
        return {
            idx: getattr(self, name)
            for idx, name in LANDMARK_SLOTS.items()
            if getattr(self, name) is not None
        }


class LandmarkSnapshot(BaseModel):
    """Landmark as captured at evaluation time (v = visibility)."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float
    v: float

    @classmethod
    def of(cls, lm: Landmark) -> "LandmarkSnapshot":
        return cls(x=lm.x, y=lm.y, z=lm.z, v=lm.visibility if lm.visibility is not None else 0.0)

    @classmethod
    def invalid(cls) -> "LandmarkSnapshot":
        return cls(x=math.nan, y=math.nan, z=math.nan, v=0.0)

    @property
    def is_valid(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    @field_serializer("x", "y", "z", when_used="json")
    def _not_available_as_null(self, value: float) -> float | None:
        return value if math.isfinite(value) else None


class HorizontalScoreDebug(BaseModel):
    """Diagnostic snapshot of one horizontal (yaw) score computation."""

    model_config = ConfigDict(frozen=True)

    score: float
    angle_deg: float
    dx: float
    dz: float
    vis_sym: float
    left: LandmarkSnapshot
    right: LandmarkSnapshot

    @classmethod
    def blank(cls) -> "HorizontalScoreDebug":
        return cls(
            score=0.0,
            angle_deg=90.0,
            dx=0.0,
            dz=0.0,
            vis_sym=0.0,
            left=LandmarkSnapshot.invalid(),
            right=LandmarkSnapshot.invalid(),
        )


# metric name -> score in [0, 1]
ScoreResult = dict[str, float]


# --- API schemas ---


class FrameIn(BaseModel):
    # null = no person detected in this frame
    landmarks: dict[int, Landmark | None] | list[Landmark | None] | None = None

    def to_pose(self) -> PoseLandmarks | None:
        if self.landmarks is None:
            return None
        if isinstance(self.landmarks, dict):
            return PoseLandmarks.from_mapping(self.landmarks)
        return PoseLandmarks.from_sequence(self.landmarks)


class StillImageIn(FrameIn):
    manual_score: float | None = Field(None, ge=0.0, le=1.0)


class BatchIn(BaseModel):
    images: list[StillImageIn]


class FrameEvaluation(BaseModel):
    detected: bool
    frame_index: int
    scores: ScoreResult | None = None  # raw, this frame only
    averaged: ScoreResult = Field(default_factory=dict)
    debug: HorizontalScoreDebug | None = None


class StillEvaluation(BaseModel):
    scores: ScoreResult
    debug: HorizontalScoreDebug
    manual_score: float | None = None
    abs_error: float | None = None  # |manual - horizontalScore|
    agreement: str | None = None
    within_tolerance: bool | None = None


class SessionCreated(BaseModel):
    session_id: str


class SessionStatus(BaseModel):
    session_id: str
    frames_seen: int
    means: ScoreResult
