"""
Audio Feature Extraction Module

Streaming prosody proxies computed per captured audio buffer:
- pitch proxy: zero-crossing rate (sign changes between adjacent samples per
  sample), divided by 0.5 and clamped to [0, 1]. Not real pitch detection,
  but cheap and needs no FFT.
- intensity proxy: root-mean-square amplitude, doubled and clamped to [0, 1].

The session accumulator keeps both values in two index-aligned series; one
analyzed buffer appends to both or to neither.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import numpy as np

import config

logger = logging.getLogger(__name__)

MIN_SAMPLES = 2


@dataclass(frozen=True)
class AudioFrameFeatures:
    pitch: float
    intensity: float


def zero_crossing_rate(samples: np.ndarray) -> float:
    """Fraction of adjacent pairs with strictly opposite sign (exact zeros do not count)."""
    if samples.size < MIN_SAMPLES:
        return 0.0
    crossings = int(np.count_nonzero(samples[1:] * samples[:-1] < 0))
    return crossings / float(samples.size)


def root_mean_square(samples: np.ndarray) -> float:
    if samples.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples))))


def to_mono_samples(samples: Any) -> np.ndarray:
    """
    Coerce a buffer to a 1-D float64 array. Non-finite values become 0.

    Raises:
        ValueError: If the buffer is not numeric or not one-dimensional
    """
    try:
        arr = np.asarray(samples, dtype=np.float64)
    except (TypeError, ValueError):
        raise ValueError("Audio samples must be numeric")
    if arr.ndim != 1:
        raise ValueError(f"Audio buffer must be single-channel (1-D), got {arr.ndim} dimensions")
    return np.nan_to_num(arr, nan=0.0, posinf=0.0, neginf=0.0)


class AudioFrameAnalyzer:
    """
    Computes (pitch proxy, intensity proxy) for one buffer. Pure: the same
    buffer always gives the same pair.
    """

    def __init__(self, pitch_normalizer: Optional[float] = None, intensity_scale: Optional[float] = None):
        self.pitch_normalizer = config.PITCH_NORMALIZER if pitch_normalizer is None else pitch_normalizer
        self.intensity_scale = config.INTENSITY_SCALE if intensity_scale is None else intensity_scale

    def analyze(self, samples: Any) -> Optional[AudioFrameFeatures]:
        """
        Args:
            samples: Single-channel float samples (list or numpy array)

        Returns:
            AudioFrameFeatures, or None for a degenerate buffer (< 2 samples)
        """
        arr = to_mono_samples(samples)
        if arr.size < MIN_SAMPLES:
            return None
        pitch = zero_crossing_rate(arr) / self.pitch_normalizer
        intensity = root_mean_square(arr) * self.intensity_scale
        return AudioFrameFeatures(
            pitch=float(np.clip(pitch, 0.0, 1.0)),
            intensity=float(np.clip(intensity, 0.0, 1.0)),
        )


@dataclass
class AudioFeatureSeries:
    """Per-session pitch and intensity sequences, always the same length."""
    pitch: List[float] = field(default_factory=list)
    intensity: List[float] = field(default_factory=list)

    def append(self, features: AudioFrameFeatures) -> None:
        self.pitch.append(features.pitch)
        self.intensity.append(features.intensity)

    def clear(self) -> None:
        self.pitch.clear()
        self.intensity.clear()

    def snapshot(self) -> Tuple[Tuple[float, ...], Tuple[float, ...]]:
        return tuple(self.pitch), tuple(self.intensity)

    def __len__(self) -> int:
        return len(self.pitch)


class FeatureAccumulator:
    """
    Appends per-buffer features to the session series.

    Usage:
        acc = FeatureAccumulator()
        acc.add_buffer(samples)       # once per captured buffer
        result = ProsodyClassifier().classify(acc.series)
    """

    def __init__(self, analyzer: Optional[AudioFrameAnalyzer] = None):
        self.analyzer = analyzer or AudioFrameAnalyzer()
        self._series = AudioFeatureSeries()

    @property
    def series(self) -> AudioFeatureSeries:
        return self._series

    def add_buffer(self, samples: Any) -> Optional[AudioFrameFeatures]:
        features = self.analyzer.analyze(samples)
        if features is None:
            logger.debug("Skipping degenerate audio buffer (fewer than %d samples)", MIN_SAMPLES)
            return None
        self._series.append(features)
        return features

    def reset(self) -> None:
        self._series.clear()
