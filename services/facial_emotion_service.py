"""
Facial emotion session service.

Runs the facial pipeline once per delivered tracking frame:
blend shapes -> EmotionScorer (with head-pose attenuation) -> TemporalSmoother.
Keeps the latest result for GET /face/state.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

import config
from utils.blend_shapes import BlendShapeFrame, FacialFeatures
from utils.emotion_scorer import EmotionScorer
from utils.head_pose import EulerAngles, head_angles
from utils.temporal_smoother import TemporalSmoother

logger = logging.getLogger(__name__)

NO_FACE_STATUS = "No face detected"


@dataclass(frozen=True)
class FacialEmotionResult:
    """Smoothed label + confidence after one frame, with that frame's details."""
    emotion: str
    confidence: float
    scores: Dict[str, float]
    head_pose: EulerAngles
    frame_count: int

    def as_dict(self) -> dict:
        return {
            "emotion": self.emotion,
            "confidence": self.confidence,
            "confidencePercent": int(self.confidence * 100),
            "scores": dict(self.scores),
            "headPose": self.head_pose.as_dict(),
            "frameCount": self.frame_count,
        }


class FacialEmotionService:
    """
    Owns the smoother history for one face-tracking session.

    Frames arrive serially from the tracker; the lock only guards against
    Flask dispatching concurrent requests on separate threads.
    """

    def __init__(self, scorer: Optional[EmotionScorer] = None, smoother: Optional[TemporalSmoother] = None):
        self.scorer = scorer or EmotionScorer()
        self.smoother = smoother or TemporalSmoother()
        self._lock = threading.Lock()
        self._frame_count = 0
        self._latest: Optional[FacialEmotionResult] = None

    def process_frame(self, frame: BlendShapeFrame) -> FacialEmotionResult:
        angles = head_angles(frame.transform)
        features = FacialFeatures.from_frame(frame)
        with self._lock:
            scores = self.scorer.score_features(features, angles)
            smoothed = self.smoother.update(scores)
            self._frame_count += 1
            result = FacialEmotionResult(
                emotion=smoothed.emotion.value,
                confidence=smoothed.confidence,
                scores={s.emotion.value: s.score for s in scores},
                head_pose=angles,
                frame_count=self._frame_count,
            )
            self._latest = result

        if config.EMOTION_DIAGNOSTIC_LOGGING and result.frame_count % config.EMOTION_DIAGNOSTIC_LOG_INTERVAL == 0:
            logger.info(
                "Face emotion: %s (%.0f%%) frames=%d pitch=%.2f yaw=%.2f roll=%.2f",
                result.emotion, result.confidence * 100, result.frame_count,
                angles.pitch, angles.yaw, angles.roll,
            )
        return result

    def current_state(self) -> Optional[FacialEmotionResult]:
        with self._lock:
            return self._latest

    @property
    def frame_count(self) -> int:
        with self._lock:
            return self._frame_count


# Lazy singleton: initialized on first use to avoid loading at import time
_facial_service: Optional[FacialEmotionService] = None


def get_facial_emotion_service() -> FacialEmotionService:
    """Return the facial service instance, creating it on first call (lazy init)."""
    global _facial_service
    if _facial_service is None:
        _facial_service = FacialEmotionService()
    return _facial_service
