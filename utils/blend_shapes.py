"""
Blend Shape Frame Module

Defines the per-frame input of the facial engine: a map of named facial
muscle activations (ARKit-style blend shapes, each 0-1) plus the head
transform and gaze point delivered by the face tracker. Also provides the
small fixed-shape feature struct the emotion scoring functions read, with
symmetric left/right pairs pre-averaged.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Sequence, Tuple

import numpy as np


# Keys consumed by the scorer. Trackers may send more; extras are ignored.
MOUTH_SMILE_LEFT = "mouthSmileLeft"
MOUTH_SMILE_RIGHT = "mouthSmileRight"
MOUTH_FROWN_LEFT = "mouthFrownLeft"
MOUTH_FROWN_RIGHT = "mouthFrownRight"
JAW_OPEN = "jawOpen"
BROW_INNER_UP = "browInnerUp"
BROW_OUTER_UP_LEFT = "browOuterUpLeft"
BROW_OUTER_UP_RIGHT = "browOuterUpRight"
EYE_BLINK_LEFT = "eyeBlinkLeft"
EYE_BLINK_RIGHT = "eyeBlinkRight"
EYE_SQUINT_LEFT = "eyeSquintLeft"
EYE_SQUINT_RIGHT = "eyeSquintRight"
NOSE_SNEER_LEFT = "noseSneerLeft"
NOSE_SNEER_RIGHT = "noseSneerRight"
CHEEK_PUFF = "cheekPuff"
MOUTH_PUCKER = "mouthPucker"
MOUTH_FUNNEL = "mouthFunnel"
MOUTH_LEFT = "mouthLeft"
MOUTH_RIGHT = "mouthRight"
BROW_DOWN_LEFT = "browDownLeft"
BROW_DOWN_RIGHT = "browDownRight"
EYE_WIDE_LEFT = "eyeWideLeft"
EYE_WIDE_RIGHT = "eyeWideRight"

BLEND_SHAPE_KEYS: Tuple[str, ...] = (
    MOUTH_SMILE_LEFT, MOUTH_SMILE_RIGHT,
    MOUTH_FROWN_LEFT, MOUTH_FROWN_RIGHT,
    JAW_OPEN,
    BROW_INNER_UP,
    BROW_OUTER_UP_LEFT, BROW_OUTER_UP_RIGHT,
    EYE_BLINK_LEFT, EYE_BLINK_RIGHT,
    EYE_SQUINT_LEFT, EYE_SQUINT_RIGHT,
    NOSE_SNEER_LEFT, NOSE_SNEER_RIGHT,
    CHEEK_PUFF,
    MOUTH_PUCKER,
    MOUTH_FUNNEL,
    MOUTH_LEFT, MOUTH_RIGHT,
    BROW_DOWN_LEFT, BROW_DOWN_RIGHT,
    EYE_WIDE_LEFT, EYE_WIDE_RIGHT,
)


class HeadTransform:
    """
    4x4 homogeneous head transform (row-major).

    The upper-left 3x3 block is the rotation, the last column holds the
    translation. Column-major sources (e.g. simd matrices) must be transposed
    by the caller before construction.
    """

    def __init__(self, matrix: Any):
        try:
            m = np.asarray(matrix, dtype=np.float64)
        except (TypeError, ValueError):
            raise ValueError("Head transform must be a 4x4 numeric matrix")
        if m.shape != (4, 4):
            raise ValueError(f"Head transform must be 4x4, got shape {m.shape}")
        if not np.all(np.isfinite(m)):
            raise ValueError("Head transform contains non-finite values")
        self._matrix = m

    @classmethod
    def identity(cls) -> "HeadTransform":
        return cls(np.eye(4))

    @classmethod
    def from_matrix(cls, matrix: Any) -> "HeadTransform":
        return cls(matrix)

    @classmethod
    def from_quaternion(
        cls,
        x: float,
        y: float,
        z: float,
        w: float,
        translation: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> "HeadTransform":
        """Build a transform from a rotation quaternion (normalized here) and a translation."""
        q = np.array([x, y, z, w], dtype=np.float64)
        norm = np.linalg.norm(q)
        if norm < 1e-12:
            raise ValueError("Quaternion must be non-zero")
        x, y, z, w = q / norm
        m = np.eye(4)
        m[0, 0] = 1 - 2 * (y * y + z * z)
        m[0, 1] = 2 * (x * y - z * w)
        m[0, 2] = 2 * (x * z + y * w)
        m[1, 0] = 2 * (x * y + z * w)
        m[1, 1] = 1 - 2 * (x * x + z * z)
        m[1, 2] = 2 * (y * z - x * w)
        m[2, 0] = 2 * (x * z - y * w)
        m[2, 1] = 2 * (y * z + x * w)
        m[2, 2] = 1 - 2 * (x * x + y * y)
        m[:3, 3] = np.asarray(translation, dtype=np.float64)
        return cls(m)

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix.copy()

    @property
    def rotation(self) -> np.ndarray:
        return self._matrix[:3, :3].copy()

    @property
    def translation(self) -> np.ndarray:
        return self._matrix[:3, 3].copy()


@dataclass
class BlendShapeFrame:
    """
    One tracked face frame. Read-only to the engines; never retained
    beyond the scoring call.
    """
    blend_shapes: Dict[str, float] = field(default_factory=dict)
    transform: HeadTransform = field(default_factory=HeadTransform.identity)
    look_at_point: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def value(self, key: str) -> float:
        """Activation for key; missing or non-finite values read as 0."""
        v = self.blend_shapes.get(key)
        if v is None:
            return 0.0
        try:
            v = float(v)
        except (TypeError, ValueError):
            return 0.0
        return v if np.isfinite(v) else 0.0

    def averaged(self, left: str, right: str) -> float:
        return (self.value(left) + self.value(right)) / 2.0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BlendShapeFrame":
        """
        Build a frame from the JSON shape used by POST /face/frame.

        Args:
            payload: {"blendShapes": {name: value}, "transform": 4x4 list (optional),
                      "lookAtPoint": [x, y, z] (optional)}

        Raises:
            ValueError: If blendShapes is not an object or transform is malformed
        """
        shapes = payload.get("blendShapes") or {}
        if not isinstance(shapes, Mapping):
            raise ValueError("blendShapes must be an object of name -> value")
        transform_raw = payload.get("transform")
        transform = HeadTransform.identity() if transform_raw is None else HeadTransform(transform_raw)
        look_at = payload.get("lookAtPoint") or (0.0, 0.0, 0.0)
        try:
            look_at_point = tuple(float(v) for v in look_at)
        except (TypeError, ValueError):
            raise ValueError("lookAtPoint must be a list of 3 numbers")
        if len(look_at_point) != 3:
            raise ValueError("lookAtPoint must be a list of 3 numbers")
        return cls(blend_shapes=dict(shapes), transform=transform, look_at_point=look_at_point)


@dataclass(frozen=True)
class FacialFeatures:
    """Post-averaging feature values (0-1) read by the emotion scoring functions."""
    smile: float = 0.0
    frown: float = 0.0
    jaw_open: float = 0.0
    brow_inner_up: float = 0.0
    brow_outer_up: float = 0.0
    eye_blink: float = 0.0
    eye_squint: float = 0.0
    nose_sneer: float = 0.0
    cheek_puff: float = 0.0
    mouth_pucker: float = 0.0
    mouth_funnel: float = 0.0
    mouth: float = 0.0
    brow_down: float = 0.0
    eye_wide: float = 0.0

    @classmethod
    def from_frame(cls, frame: BlendShapeFrame) -> "FacialFeatures":
        return cls(
            smile=frame.averaged(MOUTH_SMILE_LEFT, MOUTH_SMILE_RIGHT),
            frown=frame.averaged(MOUTH_FROWN_LEFT, MOUTH_FROWN_RIGHT),
            jaw_open=frame.value(JAW_OPEN),
            brow_inner_up=frame.value(BROW_INNER_UP),
            brow_outer_up=frame.averaged(BROW_OUTER_UP_LEFT, BROW_OUTER_UP_RIGHT),
            eye_blink=frame.averaged(EYE_BLINK_LEFT, EYE_BLINK_RIGHT),
            eye_squint=frame.averaged(EYE_SQUINT_LEFT, EYE_SQUINT_RIGHT),
            nose_sneer=frame.averaged(NOSE_SNEER_LEFT, NOSE_SNEER_RIGHT),
            cheek_puff=frame.value(CHEEK_PUFF),
            mouth_pucker=frame.value(MOUTH_PUCKER),
            mouth_funnel=frame.value(MOUTH_FUNNEL),
            mouth=frame.averaged(MOUTH_LEFT, MOUTH_RIGHT),
            brow_down=frame.averaged(BROW_DOWN_LEFT, BROW_DOWN_RIGHT),
            eye_wide=frame.averaged(EYE_WIDE_LEFT, EYE_WIDE_RIGHT),
        )

    def as_dict(self) -> Dict[str, float]:
        return dict(self.__dict__)
