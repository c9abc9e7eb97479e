"""Webcam capture."""
