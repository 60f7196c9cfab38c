"""
Prosody classification layer for the voice engine.

Maps whole-session pitch/intensity statistics to a single voice emotion with
ordered threshold rules (first match wins):

  1. Excited: loud, very varied pitch, wide pitch range
  2. Happy: higher pitch, good variation, moderate loudness
  3. Angry: very loud, steady high pitch
  4. Sad: quiet, flat, low pitch
  5. Calm: fairly quiet, steady, mid pitch
  6. Neutral: everything else

Intensity variation and range are computed for observability only; no rule
reads them.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from utils.audio_features import AudioFeatureSeries


class VoiceEmotion(Enum):
    EXCITED = "Excited"
    HAPPY = "Happy"
    ANGRY = "Angry"
    SAD = "Sad"
    CALM = "Calm"
    NEUTRAL = "Neutral"


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def population_std(values: Sequence[float]) -> float:
    """Standard deviation dividing by N; 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    m = mean(values)
    variance = sum((v - m) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def value_range(values: Sequence[float]) -> float:
    return (max(values) - min(values)) if values else 0.0


@dataclass(frozen=True)
class ProsodyStatistics:
    mean_pitch: float
    mean_intensity: float
    pitch_variation: float
    intensity_variation: float
    pitch_range: float
    intensity_range: float

    @classmethod
    def from_values(cls, pitch: Sequence[float], intensity: Sequence[float]) -> "ProsodyStatistics":
        return cls(
            mean_pitch=mean(pitch),
            mean_intensity=mean(intensity),
            pitch_variation=population_std(pitch),
            intensity_variation=population_std(intensity),
            pitch_range=value_range(pitch),
            intensity_range=value_range(intensity),
        )

    @classmethod
    def from_series(cls, series: AudioFeatureSeries) -> "ProsodyStatistics":
        pitch, intensity = series.snapshot()
        return cls.from_values(pitch, intensity)

    def as_dict(self) -> dict:
        return {
            "meanPitch": self.mean_pitch,
            "meanIntensity": self.mean_intensity,
            "pitchVariation": self.pitch_variation,
            "intensityVariation": self.intensity_variation,
            "pitchRange": self.pitch_range,
            "intensityRange": self.intensity_range,
        }


@dataclass(frozen=True)
class ProsodyThresholds:
    """Rule thresholds (tunable); defaults are the reference values."""
    excited_min_intensity: float = 0.6
    excited_min_pitch_variation: float = 0.25
    excited_min_pitch_range: float = 0.3
    happy_min_pitch: float = 0.5
    happy_min_pitch_variation: float = 0.2
    happy_min_intensity: float = 0.4
    angry_min_intensity: float = 0.7
    angry_max_pitch_variation: float = 0.15
    angry_min_pitch: float = 0.6
    sad_max_intensity: float = 0.4
    sad_max_pitch_variation: float = 0.1
    sad_max_pitch: float = 0.4
    calm_max_intensity: float = 0.5
    calm_max_pitch_variation: float = 0.15
    calm_min_pitch: float = 0.3
    calm_max_pitch: float = 0.6


@dataclass(frozen=True)
class ProsodyResult:
    emotion: VoiceEmotion
    statistics: ProsodyStatistics


class ProsodyClassifier:
    """Runs once per recording session over the full feature series."""

    def __init__(self, thresholds: Optional[ProsodyThresholds] = None):
        self.thresholds = thresholds or ProsodyThresholds()

    def classify_statistics(self, s: ProsodyStatistics) -> VoiceEmotion:
        t = self.thresholds
        if (s.mean_intensity > t.excited_min_intensity
                and s.pitch_variation > t.excited_min_pitch_variation
                and s.pitch_range > t.excited_min_pitch_range):
            return VoiceEmotion.EXCITED
        if (s.mean_pitch > t.happy_min_pitch
                and s.pitch_variation > t.happy_min_pitch_variation
                and s.mean_intensity > t.happy_min_intensity):
            return VoiceEmotion.HAPPY
        if (s.mean_intensity > t.angry_min_intensity
                and s.pitch_variation < t.angry_max_pitch_variation
                and s.mean_pitch > t.angry_min_pitch):
            return VoiceEmotion.ANGRY
        if (s.mean_intensity < t.sad_max_intensity
                and s.pitch_variation < t.sad_max_pitch_variation
                and s.mean_pitch < t.sad_max_pitch):
            return VoiceEmotion.SAD
        if (s.mean_intensity < t.calm_max_intensity
                and s.pitch_variation < t.calm_max_pitch_variation
                and t.calm_min_pitch < s.mean_pitch < t.calm_max_pitch):
            return VoiceEmotion.CALM
        return VoiceEmotion.NEUTRAL

    def classify(self, series: AudioFeatureSeries) -> Optional[ProsodyResult]:
        """
        Returns:
            ProsodyResult, or None when either series is empty (no classification)
        """
        pitch, intensity = series.snapshot()
        if not pitch or not intensity:
            return None
        stats = ProsodyStatistics.from_values(pitch, intensity)
        return ProsodyResult(self.classify_statistics(stats), stats)
