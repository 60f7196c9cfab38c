"""
Service layer tests.

Tests facial and voice session services without HTTP.
"""

import sys
import os

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import threading
import unittest
from unittest.mock import patch


class TestFacialEmotionService(unittest.TestCase):
    """Test the per-frame facial pipeline."""

    def setUp(self):
        from services.facial_emotion_service import FacialEmotionService
        from utils.temporal_smoother import TemporalSmoother
        self.service = FacialEmotionService(smoother=TemporalSmoother(capacity=15))

    def test_no_state_before_first_frame(self):
        """current_state should be None until a frame is processed."""
        self.assertIsNone(self.service.current_state())
        self.assertEqual(self.service.frame_count, 0)

    def test_process_frame_returns_smoothed_result(self):
        """A smile frame should report Happy with all seven scores."""
        from tests.fixtures.synthetic_frames import make_smile_frame
        result = self.service.process_frame(make_smile_frame())
        self.assertEqual(result.emotion, "Happy")
        self.assertEqual(len(result.scores), 7)
        self.assertIs(self.service.current_state(), result)
        body = result.as_dict()
        self.assertEqual(body["confidencePercent"], 94)
        self.assertEqual(set(body["headPose"]), {"roll", "pitch", "yaw"})

    def test_label_follows_sustained_expression(self):
        """After a run of frowns, a single smile does not flip the label."""
        from tests.fixtures.synthetic_frames import make_frown_frame, make_smile_frame
        for _ in range(10):
            self.service.process_frame(make_frown_frame())
        result = self.service.process_frame(make_smile_frame())
        self.assertEqual(result.emotion, "Angry")
        self.assertEqual(result.frame_count, 11)

    def test_history_bounded_across_long_session(self):
        """The smoother history stays at capacity over many frames."""
        from tests.fixtures.synthetic_frames import make_neutral_frame
        for _ in range(50):
            self.service.process_frame(make_neutral_frame())
        self.assertEqual(len(self.service.smoother.history), 15)
        self.assertEqual(self.service.current_state().emotion, "Neutral")

    def test_facial_history_has_no_reset(self):
        """The facial service exposes no reset; history drains only by eviction."""
        self.assertFalse(hasattr(self.service, "reset"))

    @patch("services.facial_emotion_service.config")
    def test_diagnostic_logging_interval(self, mock_config):
        """With diagnostics on, a summary is logged every N frames."""
        from tests.fixtures.synthetic_frames import make_neutral_frame
        mock_config.EMOTION_DIAGNOSTIC_LOGGING = True
        mock_config.EMOTION_DIAGNOSTIC_LOG_INTERVAL = 2
        with self.assertLogs("services.facial_emotion_service", level="INFO") as logs:
            for _ in range(4):
                self.service.process_frame(make_neutral_frame())
        self.assertEqual(len(logs.output), 2)


class _GatedAccumulator:
    """Accumulator wrapper whose add_buffer blocks until released."""

    def __init__(self):
        from utils.audio_features import FeatureAccumulator
        self.inner = FeatureAccumulator()
        self.entered = threading.Event()
        self.gate = threading.Event()

    @property
    def series(self):
        return self.inner.series

    def add_buffer(self, samples):
        self.entered.set()
        self.gate.wait(timeout=5.0)
        return self.inner.add_buffer(samples)

    def reset(self):
        self.inner.reset()


class TestVoiceEmotionService(unittest.TestCase):
    """Test recording sessions, the capture channel and classification."""

    def setUp(self):
        from services.voice_emotion_service import VoiceEmotionService
        self.service = VoiceEmotionService(channel_max_buffers=64)

    def tearDown(self):
        self.service.reset()

    def _record(self, buffers):
        self.service.start_recording()
        for buf in buffers:
            self.assertTrue(self.service.submit_buffer(buf))
        self.service.wait_for_pending()
        return self.service.stop_recording()

    def test_idle_state(self):
        """Before any session there is no label."""
        state = self.service.state()
        self.assertFalse(state["recording"])
        self.assertIsNone(state["emotion"])
        self.assertEqual(state["status"], "No voice detected")
        self.assertIsNone(self.service.detected_emotion)

    def test_submit_when_not_recording_is_rejected(self):
        """Buffers outside a session are not accepted."""
        from tests.fixtures.synthetic_frames import sine_buffer
        self.assertFalse(self.service.submit_buffer(sine_buffer()))

    def test_loud_flat_session_is_angry(self):
        """Full-scale alternating buffers: pitch 1, intensity 1, no variation."""
        from tests.fixtures.synthetic_frames import alternating_buffer
        from utils.prosody_classifier import VoiceEmotion
        result = self._record([alternating_buffer() for _ in range(6)])
        self.assertIs(result.emotion, VoiceEmotion.ANGRY)
        self.assertIs(self.service.detected_emotion, VoiceEmotion.ANGRY)
        self.assertEqual(self.service.state()["bufferCount"], 6)
        self.assertEqual(self.service.state()["status"], "Angry")

    def test_quiet_low_session_is_sad(self):
        """Quiet low-frequency tone: low pitch, low intensity, steady."""
        from tests.fixtures.synthetic_frames import sine_buffer
        from utils.prosody_classifier import VoiceEmotion
        result = self._record([sine_buffer(100.0, amplitude=0.05) for _ in range(5)])
        self.assertIs(result.emotion, VoiceEmotion.SAD)

    def test_empty_session_leaves_no_label(self):
        """Stopping with nothing captured classifies nothing."""
        self.service.start_recording()
        self.assertIsNone(self.service.stop_recording())
        self.assertIsNone(self.service.detected_emotion)
        self.assertFalse(self.service.is_recording)

    def test_stop_when_idle_keeps_previous_label(self):
        """A second stop is a no-op and keeps the last label."""
        from tests.fixtures.synthetic_frames import alternating_buffer
        from utils.prosody_classifier import VoiceEmotion
        self._record([alternating_buffer()])
        self.assertIsNone(self.service.stop_recording())
        self.assertIs(self.service.detected_emotion, VoiceEmotion.ANGRY)

    def test_degenerate_buffers_are_skipped(self):
        """Single-sample buffers are accepted but add nothing to the series."""
        from tests.fixtures.synthetic_frames import alternating_buffer
        result = self._record([[0.5], alternating_buffer(), [0.1]])
        self.assertIsNotNone(result)
        self.assertEqual(self.service.state()["bufferCount"], 1)

    def test_invalid_buffer_raises(self):
        """Non-numeric or multi-channel buffers raise ValueError."""
        self.service.start_recording()
        with self.assertRaises(ValueError):
            self.service.submit_buffer(["a", "b"])
        with self.assertRaises(ValueError):
            self.service.submit_buffer([[0.1, 0.2], [0.3, 0.4]])

    def test_start_clears_previous_session(self):
        """start_recording empties the series and forgets the last label."""
        from tests.fixtures.synthetic_frames import alternating_buffer
        self._record([alternating_buffer(), alternating_buffer()])
        self.service.start_recording()
        state = self.service.state()
        self.assertTrue(state["recording"])
        self.assertEqual(state["bufferCount"], 0)
        self.assertIsNone(state["emotion"])

    def test_reset_clears_everything(self):
        """reset stops capture and clears features and label."""
        from tests.fixtures.synthetic_frames import alternating_buffer
        self._record([alternating_buffer()])
        self.service.start_recording()
        self.service.submit_buffer(alternating_buffer())
        self.service.reset()
        state = self.service.state()
        self.assertFalse(state["recording"])
        self.assertEqual(state["bufferCount"], 0)
        self.assertIsNone(state["emotion"])
        self.assertIsNone(state["statistics"])

    def test_full_channel_drops_and_stop_discards_pending(self):
        """A full channel rejects buffers; buffers waiting at stop are never analyzed."""
        from services.voice_emotion_service import VoiceEmotionService
        from tests.fixtures.synthetic_frames import alternating_buffer
        acc = _GatedAccumulator()
        service = VoiceEmotionService(accumulator=acc, channel_max_buffers=1)
        service.start_recording()
        self.assertTrue(service.submit_buffer(alternating_buffer()))
        self.assertTrue(acc.entered.wait(timeout=5.0))
        self.assertTrue(service.submit_buffer(alternating_buffer()))
        self.assertFalse(service.submit_buffer(alternating_buffer()))

        timer = threading.Timer(0.1, acc.gate.set)
        timer.start()
        result = service.stop_recording()
        timer.join()

        state = service.state()
        self.assertEqual(state["buffersDropped"], 1)
        self.assertEqual(state["buffersReceived"], 2)
        self.assertEqual(state["bufferCount"], 1)
        self.assertIsNotNone(result)
        self.assertFalse(service.submit_buffer(alternating_buffer()))

    def test_state_reports_statistics_after_stop(self):
        """state() exposes the session statistics once classified."""
        from tests.fixtures.synthetic_frames import sine_buffer
        self._record([sine_buffer(440.0, 0.5), sine_buffer(880.0, 0.2)])
        stats = self.service.state()["statistics"]
        self.assertEqual(
            set(stats),
            {"meanPitch", "meanIntensity", "pitchVariation", "intensityVariation", "pitchRange", "intensityRange"},
        )
        self.assertGreater(stats["pitchRange"], 0.0)


class TestServiceSingletons(unittest.TestCase):
    """Test lazy service getters."""

    def test_facial_service_singleton(self):
        """get_facial_emotion_service should return the same instance."""
        from services.facial_emotion_service import get_facial_emotion_service
        self.assertIs(get_facial_emotion_service(), get_facial_emotion_service())

    def test_voice_service_singleton(self):
        """get_voice_emotion_service should return the same instance."""
        from services.voice_emotion_service import get_voice_emotion_service
        self.assertIs(get_voice_emotion_service(), get_voice_emotion_service())


if __name__ == "__main__":
    unittest.main()
