"""
Temporal Smoother Module

Turns the noisy per-frame arg-max into a stable (label, confidence) pair.
Each frame's winning emotion is pushed into a bounded history; the reported
label is the one with the largest recency-weighted score sum.

Weights: entry i (1-indexed, oldest = 1) of an n-entry history gets i / n.
Each label's confidence is its weighted sum divided by the total weight of
ALL entries, so a steady expression approaches its raw score while a
flickering history yields fractional values. This is smoothing, not a
normalized probability.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, Iterator, List, Optional, Tuple

import config
from utils.emotion_scorer import EMOTION_ORDER, Emotion, EmotionScore


@dataclass(frozen=True)
class SmoothedEmotion:
    emotion: Emotion
    confidence: float


NEUTRAL_FALLBACK = SmoothedEmotion(Emotion.NEUTRAL, 0.0)


class EmotionHistory:
    """
    Fixed-capacity FIFO of (emotion, score), oldest first.

    Backed by a deque with maxlen, so append and eviction are O(1).
    There is no clear(); the history only drains by eviction.
    """

    def __init__(self, capacity: Optional[int] = None):
        capacity = config.FACIAL_HISTORY_CAPACITY if capacity is None else capacity
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self._entries: Deque[Tuple[Emotion, float]] = deque(maxlen=capacity)

    def append(self, emotion: Emotion, score: float) -> None:
        self._entries.append((emotion, float(score)))

    def entries(self) -> List[Tuple[Emotion, float]]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[Emotion, float]]:
        return iter(list(self._entries))


def select_dominant(scores: Iterable[EmotionScore]) -> EmotionScore:
    """
    Pick the frame's winner: strictly greatest score, ties to the earliest
    label in enumeration order. With no positive score, Neutral at 0.
    """
    by_emotion = {s.emotion: s.score for s in scores}
    best: Optional[EmotionScore] = None
    for emotion in EMOTION_ORDER:
        if emotion not in by_emotion:
            continue
        score = by_emotion[emotion]
        if best is None or score > best.score:
            best = EmotionScore(emotion, score)
    if best is None or best.score <= 0.0:
        return EmotionScore(Emotion.NEUTRAL, 0.0)
    return best


def weighted_average(entries: List[Tuple[Emotion, float]]) -> SmoothedEmotion:
    """Recency-weighted winner over a history snapshot (oldest first)."""
    n = len(entries)
    if n == 0:
        return NEUTRAL_FALLBACK

    sums: Dict[Emotion, float] = {}
    total_weight = 0.0
    for index, (emotion, score) in enumerate(entries):
        weight = (index + 1) / n
        sums[emotion] = sums.get(emotion, 0.0) + score * weight
        total_weight += weight

    winner: Optional[Emotion] = None
    for emotion in EMOTION_ORDER:
        if emotion in sums and (winner is None or sums[emotion] > sums[winner]):
            winner = emotion
    confidence = sums[winner] / total_weight if total_weight > 0 else 0.0
    return SmoothedEmotion(winner, max(0.0, min(1.0, confidence)))


class TemporalSmoother:
    """
    Maintains the emotion history and reports the stabilized label.

    Usage:
        smoother = TemporalSmoother()
        result = smoother.update(scorer.score_frame(frame))
        print(result.emotion.value, result.confidence)
    """

    def __init__(self, capacity: Optional[int] = None):
        self.history = EmotionHistory(capacity)

    def update(self, scores: Iterable[EmotionScore]) -> SmoothedEmotion:
        dominant = select_dominant(scores)
        self.history.append(dominant.emotion, dominant.score)
        return self.current()

    def current(self) -> SmoothedEmotion:
        return weighted_average(self.history.entries())
