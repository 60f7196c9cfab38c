"""
Flask routes for Emotion Detect.

Facial engine: POST a blend-shape frame per tracked frame, read back the
smoothed emotion. Voice engine: start a recording, stream raw buffers, stop
to get one label for the session. Plus config and health endpoints.
"""

import logging

from flask import Blueprint, Flask, jsonify, request

from services.facial_emotion_service import NO_FACE_STATUS, get_facial_emotion_service
from services.voice_emotion_service import NO_VOICE_STATUS, get_voice_emotion_service
from utils.blend_shapes import BlendShapeFrame
import config

logger = logging.getLogger(__name__)

# Create a blueprint for better organization
api = Blueprint('api', __name__)


def register_routes(app: Flask) -> None:
    """Attach every route in this module to the app."""
    app.register_blueprint(api)


# ============================================================================
# Health and Config Routes
# ============================================================================

@api.route("/favicon.ico")
def favicon():
    """
    Handle favicon requests.

    Returns:
        Response: Empty 204 response
    """
    return "", 204


@api.route("/health", methods=["GET"])
def health():
    """Liveness check with the recording flag and processed frame count."""
    return jsonify({
        "status": "ok",
        "faceFrames": get_facial_emotion_service().frame_count,
        "voiceRecording": get_voice_emotion_service().is_recording,
    })


@api.route("/config/all", methods=["GET"])
def get_all_config():
    """
    Get all configuration settings in a single request.

    Returns:
        JSON: Facial, voice, and diagnostics settings
    """
    return jsonify(config.build_config_response())


# ============================================================================
# Facial Emotion Routes
# ============================================================================

@api.route("/face/frame", methods=["POST"])
def face_frame():
    """
    Score one tracked face frame and return the smoothed emotion.

    Request Body:
        {
            "blendShapes": {"mouthSmileLeft": 0.8, ...},
            "transform": [[...4 floats...] x 4]   (optional, row-major; identity if omitted),
            "lookAtPoint": [x, y, z]               (optional)
        }

    Returns:
        JSON: {
            "emotion": "Happy",
            "confidence": 0.94,
            "confidencePercent": 94,
            "scores": {"Happy": 0.94, ...},
            "headPose": {"roll": 0.0, "pitch": 0.0, "yaw": 0.0},
            "frameCount": 1
        }
    """
    if not request.is_json:
        return jsonify({"error": "Request must be JSON"}), 400

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        frame = BlendShapeFrame.from_dict(data)
    except ValueError as e:
        return jsonify({"error": "Invalid face frame", "details": str(e)}), 400

    try:
        result = get_facial_emotion_service().process_frame(frame)
        return jsonify(result.as_dict())
    except Exception as e:
        logger.exception("Face frame processing failed")
        return jsonify({
            "error": "Failed to process face frame",
            "details": str(e)
        }), 500


@api.route("/face/state", methods=["GET"])
def face_state():
    """
    Get the latest smoothed facial emotion.

    Returns:
        JSON: Latest result (same shape as POST /face/frame), or
        {"emotion": null, "confidence": 0.0, "status": "No face detected"} before the first frame
    """
    state = get_facial_emotion_service().current_state()
    if state is None:
        return jsonify({"emotion": None, "confidence": 0.0, "status": NO_FACE_STATUS})
    body = state.as_dict()
    body["status"] = state.emotion
    return jsonify(body)


# ============================================================================
# Voice Emotion Routes
# ============================================================================

@api.route("/voice/start", methods=["POST"])
def voice_start():
    """
    Start a recording session (clears the previous session's features and label).

    Returns:
        JSON: {"success": true, "message": "Recording started"}
    """
    try:
        get_voice_emotion_service().start_recording()
        return jsonify({"success": True, "message": "Recording started"})
    except Exception as e:
        logger.exception("Failed to start recording")
        return jsonify({
            "error": "Failed to start recording",
            "details": str(e)
        }), 500


@api.route("/voice/buffer", methods=["POST"])
def voice_buffer():
    """
    Receive one captured audio buffer (single channel, float samples).

    Request Body:
        {"samples": [0.01, -0.02, ...]}

    Returns:
        JSON: {"accepted": true|false}; false when not recording or the channel is full
    """
    if not request.is_json:
        return jsonify({"error": "Request must be JSON"}), 400
    data = request.get_json(silent=True) or {}
    samples = data.get("samples") if isinstance(data, dict) else None
    if not isinstance(samples, list):
        return jsonify({"error": "samples must be a list of numbers"}), 400
    try:
        accepted = get_voice_emotion_service().submit_buffer(samples)
    except ValueError as e:
        return jsonify({"error": "Invalid audio buffer", "details": str(e)}), 400
    return jsonify({"accepted": accepted})


@api.route("/voice/stop", methods=["POST"])
def voice_stop():
    """
    Stop recording and classify the session.

    Returns:
        JSON: {
            "success": true,
            "emotion": "Excited" | ... | null (nothing captured),
            "statistics": {...} | null
        }
    """
    try:
        result = get_voice_emotion_service().stop_recording()
    except Exception as e:
        logger.exception("Failed to stop recording")
        return jsonify({
            "error": "Failed to stop recording",
            "details": str(e)
        }), 500
    if result is None:
        return jsonify({"success": True, "emotion": None, "statistics": None})
    return jsonify({
        "success": True,
        "emotion": result.emotion.value,
        "statistics": result.statistics.as_dict(),
    })


@api.route("/voice/reset", methods=["POST"])
def voice_reset():
    """Discard the current session (features and detected label)."""
    get_voice_emotion_service().reset()
    return jsonify({"success": True, "status": NO_VOICE_STATUS})


@api.route("/voice/state", methods=["GET"])
def voice_state():
    """
    Get the voice session state.

    Returns:
        JSON: {"recording", "bufferCount", "buffersReceived", "buffersDropped",
               "buffersDiscarded", "emotion", "status", "statistics"}
    """
    return jsonify(get_voice_emotion_service().state())
