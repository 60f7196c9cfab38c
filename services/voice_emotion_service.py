"""
Voice emotion session service.

One recording session at a time:
- start_recording() clears the session series and starts a capture worker.
- submit_buffer() (audio callback path) hands raw buffers to the worker over a
  single-writer/single-reader channel; the worker analyzes and appends.
- stop_recording() closes the channel, discards buffers still waiting, joins
  the worker, and only then classifies the full series once.

The series is append-only while recording and read-only after the worker has
been joined, so classification never races with capture.
"""

import logging
import queue
import threading
from typing import Any, Optional

import numpy as np

import config
from utils.audio_features import FeatureAccumulator, to_mono_samples
from utils.prosody_classifier import ProsodyClassifier, ProsodyResult, VoiceEmotion

logger = logging.getLogger(__name__)

NO_VOICE_STATUS = "No voice detected"

_STOP = object()


def _capture_loop(channel: "queue.Queue", stop_event: threading.Event, accumulator: FeatureAccumulator) -> None:
    while True:
        item = channel.get()
        try:
            if item is _STOP or stop_event.is_set():
                break
            accumulator.add_buffer(item)
        finally:
            channel.task_done()


class VoiceEmotionService:
    """
    Owns the feature series for the current recording session.

    Usage:
        service = VoiceEmotionService()
        service.start_recording()
        service.submit_buffer(samples)      # per captured buffer
        result = service.stop_recording()   # ProsodyResult or None
    """

    def __init__(
        self,
        accumulator: Optional[FeatureAccumulator] = None,
        classifier: Optional[ProsodyClassifier] = None,
        channel_max_buffers: Optional[int] = None,
    ):
        self.accumulator = accumulator or FeatureAccumulator()
        self.classifier = classifier or ProsodyClassifier()
        self.channel_max_buffers = config.VOICE_CHANNEL_MAX_BUFFERS if channel_max_buffers is None else channel_max_buffers
        self._lock = threading.Lock()
        self._recording = False
        self._channel: Optional[queue.Queue] = None
        self._stop_event: Optional[threading.Event] = None
        self._worker: Optional[threading.Thread] = None
        self._buffers_received = 0
        self._buffers_dropped = 0
        self._buffers_discarded = 0
        self._detected: Optional[VoiceEmotion] = None
        self._last_result: Optional[ProsodyResult] = None

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._recording

    @property
    def detected_emotion(self) -> Optional[VoiceEmotion]:
        with self._lock:
            return self._detected

    @property
    def last_result(self) -> Optional[ProsodyResult]:
        with self._lock:
            return self._last_result

    def start_recording(self) -> None:
        """Begin a new session. A session already running is discarded unclassified."""
        with self._lock:
            if self._recording:
                logger.warning("Recording already in progress; restarting session")
                self._shutdown_capture()
            self.accumulator.reset()
            self._detected = None
            self._last_result = None
            self._buffers_received = 0
            self._buffers_dropped = 0
            self._buffers_discarded = 0

            self._channel = queue.Queue(maxsize=self.channel_max_buffers)
            self._stop_event = threading.Event()
            self._worker = threading.Thread(
                target=_capture_loop,
                args=(self._channel, self._stop_event, self.accumulator),
                name="voice-capture",
                daemon=True,
            )
            self._recording = True
            self._worker.start()
        logger.info("Voice recording started")

    def submit_buffer(self, samples: Any) -> bool:
        """
        Hand one captured buffer to the capture worker.

        Returns:
            True if queued; False if not recording or the channel is full

        Raises:
            ValueError: If samples are not a numeric single-channel buffer
        """
        arr: np.ndarray = to_mono_samples(samples)
        with self._lock:
            if not self._recording or self._channel is None:
                return False
            try:
                self._channel.put_nowait(arr)
            except queue.Full:
                self._buffers_dropped += 1
                logger.warning("Voice capture channel full; dropping buffer")
                return False
            self._buffers_received += 1
            return True

    def wait_for_pending(self) -> None:
        """Block until every buffer queued so far has been analyzed (no-op when idle)."""
        with self._lock:
            channel = self._channel
        if channel is not None:
            channel.join()

    def stop_recording(self) -> Optional[ProsodyResult]:
        """
        End the session and classify it once.

        Returns:
            ProsodyResult, or None if not recording or nothing was captured
            (the previously detected label is then left unchanged)
        """
        with self._lock:
            if not self._recording:
                return None
            self._shutdown_capture()
            result = self.classifier.classify(self.accumulator.series)
            if result is not None:
                self._detected = result.emotion
                self._last_result = result
        if result is None:
            logger.info("Voice recording stopped; no audio features captured")
        else:
            logger.info(
                "Voice recording stopped: %s (buffers=%d, meanPitch=%.3f, meanIntensity=%.3f)",
                result.emotion.value, len(self.accumulator.series),
                result.statistics.mean_pitch, result.statistics.mean_intensity,
            )
        return result

    def reset(self) -> None:
        """Stop any capture and clear the session series and detected label."""
        with self._lock:
            if self._recording:
                self._shutdown_capture()
            self.accumulator.reset()
            self._detected = None
            self._last_result = None
            self._buffers_received = 0
            self._buffers_dropped = 0
            self._buffers_discarded = 0

    def state(self) -> dict:
        with self._lock:
            emotion = self._detected.value if self._detected else None
            return {
                "recording": self._recording,
                "bufferCount": len(self.accumulator.series),
                "buffersReceived": self._buffers_received,
                "buffersDropped": self._buffers_dropped,
                "buffersDiscarded": self._buffers_discarded,
                "emotion": emotion,
                "status": emotion or NO_VOICE_STATUS,
                "statistics": self._last_result.statistics.as_dict() if self._last_result else None,
            }

    def _shutdown_capture(self) -> None:
        # Caller holds self._lock. After this returns no further appends can happen.
        self._recording = False
        if self._stop_event is not None:
            self._stop_event.set()
        if self._channel is not None:
            while True:
                try:
                    self._channel.get_nowait()
                except queue.Empty:
                    break
                self._channel.task_done()
                self._buffers_discarded += 1
            self._channel.put(_STOP)
        if self._worker is not None:
            self._worker.join()
        if self._channel is not None:
            # Release any waiter blocked in wait_for_pending().
            while True:
                try:
                    self._channel.get_nowait()
                except queue.Empty:
                    break
                self._channel.task_done()
        self._channel = None
        self._stop_event = None
        self._worker = None


# Lazy singleton: initialized on first use to avoid loading at import time
_voice_service: Optional[VoiceEmotionService] = None


def get_voice_emotion_service() -> VoiceEmotionService:
    """Return the voice service instance, creating it on first call (lazy init)."""
    global _voice_service
    if _voice_service is None:
        _voice_service = VoiceEmotionService()
    return _voice_service
