"""
=============================================================================
CONFIGURATION FOR EMOTION DETECT (config.py)
=============================================================================

WHAT THIS FILE DOES (in plain language):
----------------------------------------
This file holds ALL configurable settings for the project in one place. Other
files read from it. Values come from the environment (your .env file or system
variables) so you can tune the engines without changing code.

MAIN GROUPS OF SETTINGS:
------------------------
  1. Facial engine: History size for temporal smoothing and head-pose penalties.
  2. Voice engine: Buffer size and the normalizers for pitch/intensity proxies.
  3. Diagnostics: Log level and optional periodic diagnostic lines.
  4. Server: Host, port, and debug mode for the web server.

HOW VALUES ARE CHOSEN:
---------------------
  - Environment variables (e.g. FACIAL_HISTORY_CAPACITY) override everything.
  - If an env var is not set, the default below is used.
=============================================================================
"""

import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() == "true"


# ============================================================================
# FACIAL ENGINE (blend shapes -> emotion label + confidence)
# ============================================================================
# Number of recent per-frame winners kept for the recency-weighted average.
# Larger = steadier label but slower to react.
FACIAL_HISTORY_CAPACITY: int = max(1, _env_int("FACIAL_HISTORY_CAPACITY", 15))

# Head pose: any Euler angle (radians) beyond this threshold costs a fraction
# of every emotion score. Penalties add up and are capped at 100%.
# Pitch = nod (X axis), yaw = turn (Y axis), roll = tilt (Z axis).
HEAD_POSE_ANGLE_THRESHOLD_RAD: float = _env_float("HEAD_POSE_ANGLE_THRESHOLD_RAD", 0.5)
HEAD_POSE_PITCH_PENALTY: float = _env_float("HEAD_POSE_PITCH_PENALTY", 0.2)
HEAD_POSE_YAW_PENALTY: float = _env_float("HEAD_POSE_YAW_PENALTY", 0.2)
HEAD_POSE_ROLL_PENALTY: float = _env_float("HEAD_POSE_ROLL_PENALTY", 0.1)

# ============================================================================
# VOICE ENGINE (raw audio -> prosody label)
# ============================================================================
# Reference buffer size delivered by the audio device (samples per buffer).
AUDIO_BUFFER_SIZE: int = max(2, _env_int("AUDIO_BUFFER_SIZE", 1024))
# Zero-crossing rate is divided by this before clamping (0.5 = "max pitch").
PITCH_NORMALIZER: float = _env_float("PITCH_NORMALIZER", 0.5)
# RMS is multiplied by this before clamping.
INTENSITY_SCALE: float = _env_float("INTENSITY_SCALE", 2.0)
# Capture channel capacity; buffers beyond this while recording are dropped.
VOICE_CHANNEL_MAX_BUFFERS: int = max(1, _env_int("VOICE_CHANNEL_MAX_BUFFERS", 256))

# ============================================================================
# DIAGNOSTICS
# ============================================================================
LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
# When true, the facial service logs its smoothed state every N frames.
EMOTION_DIAGNOSTIC_LOGGING: bool = _env_bool("EMOTION_DIAGNOSTIC_LOGGING", False)
EMOTION_DIAGNOSTIC_LOG_INTERVAL: int = max(1, _env_int("EMOTION_DIAGNOSTIC_LOG_INTERVAL", 30))

# ============================================================================
# SERVER
# ============================================================================
FLASK_PORT: int = _env_int("FLASK_PORT", 5000)
FLASK_DEBUG: bool = _env_bool("FLASK_DEBUG", False)
FLASK_HOST: str = os.getenv("FLASK_HOST", "0.0.0.0")


def warn_invalid_config() -> None:
    """
    Print a warning for settings that are outside their sensible range.
    Nothing is changed; the engines still clamp their own outputs.
    """
    problems = []
    if HEAD_POSE_ANGLE_THRESHOLD_RAD <= 0:
        problems.append("HEAD_POSE_ANGLE_THRESHOLD_RAD should be > 0")
    for name, value in (
        ("HEAD_POSE_PITCH_PENALTY", HEAD_POSE_PITCH_PENALTY),
        ("HEAD_POSE_YAW_PENALTY", HEAD_POSE_YAW_PENALTY),
        ("HEAD_POSE_ROLL_PENALTY", HEAD_POSE_ROLL_PENALTY),
    ):
        if not 0.0 <= value <= 1.0:
            problems.append(f"{name} should be between 0 and 1 (got {value})")
    if PITCH_NORMALIZER <= 0:
        problems.append("PITCH_NORMALIZER should be > 0")
    if INTENSITY_SCALE <= 0:
        problems.append("INTENSITY_SCALE should be > 0")
    for p in problems:
        print(f"Warning: {p}")


def get_facial_config() -> dict:
    return {
        "historyCapacity": FACIAL_HISTORY_CAPACITY,
        "angleThresholdRad": HEAD_POSE_ANGLE_THRESHOLD_RAD,
        "pitchPenalty": HEAD_POSE_PITCH_PENALTY,
        "yawPenalty": HEAD_POSE_YAW_PENALTY,
        "rollPenalty": HEAD_POSE_ROLL_PENALTY,
    }


def get_voice_config() -> dict:
    return {
        "audioBufferSize": AUDIO_BUFFER_SIZE,
        "pitchNormalizer": PITCH_NORMALIZER,
        "intensityScale": INTENSITY_SCALE,
        "channelMaxBuffers": VOICE_CHANNEL_MAX_BUFFERS,
    }


def build_config_response() -> dict:
    """
    Build the complete configuration response for GET /config/all.
    Aggregates all settings into a single dictionary.
    """
    return {
        "facial": get_facial_config(),
        "voice": get_voice_config(),
        "diagnostics": {
            "logLevel": LOG_LEVEL,
            "emotionDiagnosticLogging": EMOTION_DIAGNOSTIC_LOGGING,
            "emotionDiagnosticLogInterval": EMOTION_DIAGNOSTIC_LOG_INTERVAL,
        },
    }
