"""
Webcam capture for the frame loop.

Frames are read synchronously from the main loop; the loop only runs while
the camera reports ready.
"""

import time
import logging
import cv2
import numpy as np

logger = logging.getLogger(__name__)


class CameraManager:
    """OpenCV VideoCapture wrapper with mirror flip and warmup."""

    def __init__(self, config: dict):
        self._device_id = config.get("device_id", 0)
        self._width = config.get("width", 640)
        self._height = config.get("height", 480)
        self._fps = config.get("fps", 30)
        self._backend = config.get("backend", "auto")
        self._flip_h = config.get("flip_horizontal", True)
        self._warmup_frames = config.get("warmup_frames", 5)

        self._cap = None
        self._frame_id = 0
        self._capture_times = []

    def open(self) -> bool:
        """Open camera with configured settings."""
        backend_map = {
            "v4l2": cv2.CAP_V4L2,
            "dshow": cv2.CAP_DSHOW,
            "auto": cv2.CAP_ANY,
        }
        backend = backend_map.get(self._backend, cv2.CAP_ANY)

        self._cap = cv2.VideoCapture(self._device_id, backend)
        if not self._cap.isOpened():
            logger.error("Failed to open camera %d with backend %s", self._device_id, self._backend)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap.set(cv2.CAP_PROP_FPS, self._fps)

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info("Camera opened: %dx%d (requested %dx%d @ %d)",
                    actual_w, actual_h, self._width, self._height, self._fps)

        # Let auto-exposure settle
        for _ in range(self._warmup_frames):
            self._cap.read()

        return True

    def read(self):
        """Read the next frame.

        Returns:
            tuple: (frame_id, BGR numpy array) or (None, None)
        """
        if self._cap is None:
            return None, None
        start = time.perf_counter()
        ret, frame = self._cap.read()
        elapsed_ms = (time.perf_counter() - start) * 1000
        if not ret or frame is None:
            return None, None

        if self._flip_h:
            frame = cv2.flip(frame, 1)
        self._frame_id += 1
        self._capture_times.append(elapsed_ms)
        if len(self._capture_times) > 100:
            self._capture_times = self._capture_times[-100:]
        return self._frame_id, frame

    def blank_frame(self) -> np.ndarray:
        """Black frame used to keep the window alive without a camera."""
        return np.zeros((self._height, self._width, 3), dtype=np.uint8)

    @property
    def avg_capture_time_ms(self) -> float:
        if not self._capture_times:
            return 0.0
        return sum(self._capture_times) / len(self._capture_times)

    @property
    def is_ready(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def stop(self):
        """Release camera."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera stopped")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
