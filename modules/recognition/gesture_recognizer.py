"""
MediaPipe Tasks gesture recognizer wrapper (VIDEO running mode).

Only the top-ranked category of the first hand is used downstream; an empty
result means "no gesture" and becomes a confidence-0 sample.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

import cv2
import numpy as np
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from core.types import ClassificationSample

logger = logging.getLogger(__name__)


@dataclass
class ClassificationResult:
    """Ranked (label, confidence) candidates for the first detected hand."""
    gestures: List[Tuple[str, float]] = field(default_factory=list)

    def top_sample(self, timestamp_ms: int) -> ClassificationSample:
        if not self.gestures:
            return ClassificationSample.empty(timestamp_ms)
        label, confidence = self.gestures[0]
        return ClassificationSample(label=label, confidence=float(confidence),
                                    timestamp_ms=timestamp_ms)


class GestureRecognizer:
    """Frame classifier backed by the MediaPipe gesture_recognizer.task model."""

    def __init__(self, config: dict):
        self._model_path = config.get("model_path", "models/gesture_recognizer.task")
        self._num_hands = config.get("num_hands", 1)
        self._min_detect_conf = config.get("min_hand_detection_confidence", 0.5)
        self._min_presence_conf = config.get("min_hand_presence_confidence", 0.5)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)

        self._recognizer = None
        self._initialized = False
        self._last_timestamp_ms = -1

    def initialize(self) -> bool:
        """Load the model. Returns False (and logs) when it cannot be loaded."""
        if not os.path.exists(self._model_path):
            logger.error("Gesture model not found: %s", self._model_path)
            return False
        try:
            options = vision.GestureRecognizerOptions(
                base_options=mp_tasks.BaseOptions(model_asset_path=self._model_path),
                running_mode=vision.RunningMode.VIDEO,
                num_hands=self._num_hands,
                min_hand_detection_confidence=self._min_detect_conf,
                min_hand_presence_confidence=self._min_presence_conf,
                min_tracking_confidence=self._min_track_conf,
            )
            self._recognizer = vision.GestureRecognizer.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            logger.error("Failed to create gesture recognizer: %s", e)
            return False

        self._initialized = True
        logger.info("MediaPipe GestureRecognizer initialized (model=%s, hands=%d)",
                    self._model_path, self._num_hands)
        return True

    def classify_frame(self, bgr_frame: np.ndarray, timestamp_ms: int) -> ClassificationResult:
        """Classify one BGR frame.

        VIDEO mode requires strictly increasing timestamps; a repeated or
        older timestamp is nudged forward by 1 ms.
        """
        if not self._initialized:
            return ClassificationResult()

        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        rgb = cv2.cvtColor(bgr_frame, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(rgb))
        result = self._recognizer.recognize_for_video(image, timestamp_ms)

        if not result.gestures or not result.gestures[0]:
            return ClassificationResult()
        return ClassificationResult(
            gestures=[(c.category_name, c.score) for c in result.gestures[0]]
        )

    @property
    def is_ready(self) -> bool:
        return self._initialized

    def close(self):
        """Release MediaPipe resources."""
        if self._recognizer is not None:
            self._recognizer.close()
            self._recognizer = None
            self._initialized = False
            logger.info("MediaPipe GestureRecognizer closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
