"""
Emotion Scorer Module

Scores seven basic emotions from one blend-shape frame with hand-tuned linear
combinations. Each emotion has a base input weighted 1.2 plus smaller bonuses
(add) and penalties (subtract), so a single dominant expression pushes one
emotion toward 1 while the others stay low. Overlapping inputs (jaw open is a
Happy penalty but the Surprised base) make emotions compete; the temporal
smoother resolves that by arg-max.

Every raw score is clamped to [0, 1] and then discounted by head pose.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from utils.blend_shapes import BlendShapeFrame, FacialFeatures
from utils.head_pose import EulerAngles, HeadPoseAttenuator, head_angles


class Emotion(Enum):
    """Facial emotion labels, in the fixed order used for tie-breaking."""
    HAPPY = "Happy"
    ANGRY = "Angry"
    SAD = "Sad"
    SURPRISED = "Surprised"
    DISGUSTED = "Disgusted"
    FEARFUL = "Fearful"
    NEUTRAL = "Neutral"


EMOTION_ORDER: List[Emotion] = list(Emotion)


@dataclass(frozen=True)
class EmotionScore:
    emotion: Emotion
    score: float


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def happy_score(f: FacialFeatures) -> float:
    return _clamp(1.2 * f.smile - 0.2 * f.eye_squint - 0.1 * f.jaw_open + 0.3 * f.cheek_puff)


def angry_score(f: FacialFeatures) -> float:
    return _clamp(1.2 * f.frown + 0.4 * f.brow_inner_up + 0.3 * f.eye_squint + 0.3 * f.brow_down)


def sad_score(f: FacialFeatures) -> float:
    return _clamp(1.2 * f.frown - 0.2 * f.brow_inner_up - 0.3 * f.smile + 0.3 * f.mouth_pucker)


def surprised_score(f: FacialFeatures) -> float:
    return _clamp(1.2 * f.jaw_open + 0.4 * f.brow_outer_up - 0.1 * f.eye_blink + 0.3 * f.eye_wide)


def disgusted_score(f: FacialFeatures) -> float:
    return _clamp(1.2 * f.eye_squint + 0.4 * f.nose_sneer - 0.3 * f.smile + 0.3 * f.mouth_funnel)


def fearful_score(f: FacialFeatures) -> float:
    return _clamp(1.2 * f.brow_outer_up + 0.3 * f.jaw_open - 0.3 * f.smile + 0.3 * f.eye_wide)


def neutral_score(f: FacialFeatures) -> float:
    """High when nothing is expressed; halved as soon as any expression passes 0.1."""
    strongest = max(f.smile, f.frown, f.jaw_open, f.brow_inner_up, f.mouth)
    base = 1.0 - strongest
    return _clamp(base if strongest < 0.1 else base * 0.5)


SCORING_FUNCTIONS: Dict[Emotion, Callable[[FacialFeatures], float]] = {
    Emotion.HAPPY: happy_score,
    Emotion.ANGRY: angry_score,
    Emotion.SAD: sad_score,
    Emotion.SURPRISED: surprised_score,
    Emotion.DISGUSTED: disgusted_score,
    Emotion.FEARFUL: fearful_score,
    Emotion.NEUTRAL: neutral_score,
}


class EmotionScorer:
    """
    Computes the seven head-pose-adjusted emotion scores for a frame.

    Usage:
        scorer = EmotionScorer()
        scores = scorer.score_frame(frame)   # 7 EmotionScore, enumeration order
    """

    def __init__(self, attenuator: Optional[HeadPoseAttenuator] = None):
        self.attenuator = attenuator or HeadPoseAttenuator()

    def raw_scores(self, features: FacialFeatures) -> List[EmotionScore]:
        """Clamped scores before head-pose attenuation."""
        return [EmotionScore(e, SCORING_FUNCTIONS[e](features)) for e in EMOTION_ORDER]

    def score_features(self, features: FacialFeatures, angles: EulerAngles) -> List[EmotionScore]:
        return [
            EmotionScore(s.emotion, self.attenuator.attenuate_with_angles(s.score, angles))
            for s in self.raw_scores(features)
        ]

    def score_frame(self, frame: BlendShapeFrame) -> List[EmotionScore]:
        # Angles depend only on the transform; compute once for all seven scores.
        return self.score_features(FacialFeatures.from_frame(frame), head_angles(frame.transform))
