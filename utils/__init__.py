"""
Utilities package for Emotion Detect.

This package contains the two classification engines: blend-shape emotion
scoring with head-pose attenuation and temporal smoothing (facial), and
streaming pitch/intensity extraction with threshold classification (voice).
"""

from .blend_shapes import BlendShapeFrame, FacialFeatures, HeadTransform
from .head_pose import EulerAngles, HeadPoseAttenuator
from .emotion_scorer import Emotion, EmotionScore, EmotionScorer
from .temporal_smoother import EmotionHistory, SmoothedEmotion, TemporalSmoother
from .audio_features import AudioFeatureSeries, AudioFrameAnalyzer, FeatureAccumulator
from .prosody_classifier import ProsodyClassifier, ProsodyStatistics, VoiceEmotion

__all__ = [
    'BlendShapeFrame',
    'FacialFeatures',
    'HeadTransform',
    'EulerAngles',
    'HeadPoseAttenuator',
    'Emotion',
    'EmotionScore',
    'EmotionScorer',
    'EmotionHistory',
    'SmoothedEmotion',
    'TemporalSmoother',
    'AudioFeatureSeries',
    'AudioFrameAnalyzer',
    'FeatureAccumulator',
    'ProsodyClassifier',
    'ProsodyStatistics',
    'VoiceEmotion',
]
