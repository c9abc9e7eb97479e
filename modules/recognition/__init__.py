"""Gesture recognition module."""
from .gesture_recognizer import GestureRecognizer, ClassificationResult

__all__ = [
    "GestureRecognizer",
    "ClassificationResult",
]
