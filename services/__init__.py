"""
Services package for Emotion Detect.

This package contains the session-level services that wire the engines to
their input streams:
- Facial emotion: one smoother history per face-tracking session
- Voice emotion: recording lifecycle, capture worker, end-of-session classification
"""
