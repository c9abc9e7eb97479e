"""
Frame loop: capture -> classify -> debounce -> dispatch.

Architecture:
    CameraManager -> GestureRecognizer -> HoldDebouncer -> EventDispatcher
    -> {LiveClassResponder | QuizEngine}

The loop is a self-rescheduling callback on the shared Scheduler. It runs
while it is started and both the camera and the classifier are ready;
stop() revokes the pending re-schedule so no callback outlives the camera
or the model. Everything the loop mutates lives in one LoopState object.
The debouncer is rebuilt only when the mode (and with it the thresholds)
changes.
"""

import logging
from typing import Callable, Dict, Optional

from core.events import EventBus, Events
from core.scheduler import Scheduler
from core.types import AppMode, ClassificationSample, ConfirmedEvent
from modules.control.debouncer import DebouncerConfig, HoldDebouncer

logger = logging.getLogger(__name__)


class LoopState:
    """Mutable state read and written by every loop iteration."""

    __slots__ = (
        "mode", "running", "frame_count", "event_count",
        "last_frame", "last_sample", "last_event",
    )

    def __init__(self, mode: AppMode):
        self.mode = mode
        self.running = False
        self.frame_count = 0
        self.event_count = 0
        self.last_frame = None
        self.last_sample: Optional[ClassificationSample] = None
        self.last_event: Optional[ConfirmedEvent] = None


class FrameLoop:
    """Per-frame gesture pipeline on the cooperative scheduler.

    Args:
        camera: object with read() -> (frame_id, frame) and is_ready
        classifier: object with classify_frame(frame, ts_ms) and is_ready
        dispatcher: EventDispatcher
        scheduler: shared Scheduler
        debounce_configs: per-mode DebouncerConfig
        frame_interval_s: delay between iterations (0 = as fast as the loop turns)
        raw_label_listener: optional callable(label) for above-threshold raw labels
    """

    def __init__(self, camera, classifier, dispatcher, scheduler: Scheduler,
                 debounce_configs: Dict[AppMode, DebouncerConfig],
                 mode: AppMode = AppMode.CLASS, frame_interval_s: float = 0.0,
                 raw_label_listener: Callable[[str], None] = None,
                 event_bus: EventBus = None):
        self._camera = camera
        self._classifier = classifier
        self._dispatcher = dispatcher
        self._scheduler = scheduler
        self._configs = dict(debounce_configs)
        self._interval = frame_interval_s
        self._raw_label_listener = raw_label_listener
        self._bus = event_bus or EventBus()

        self.state = LoopState(mode)
        self._debouncer = HoldDebouncer(self._config_for(mode))
        self._pending = None
        self._dispatcher.set_mode(mode)

    def _config_for(self, mode: AppMode) -> DebouncerConfig:
        return self._configs.get(mode) or DebouncerConfig()

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    def start(self) -> bool:
        """Begin iterating. Returns False when camera or classifier is not ready."""
        if self.state.running:
            return True
        if not self._camera.is_ready or not self._classifier.is_ready:
            logger.warning("Frame loop not started: camera ready=%s, classifier ready=%s",
                           self._camera.is_ready, self._classifier.is_ready)
            return False
        self.state.running = True
        self._schedule_next()
        logger.info("Frame loop started (mode=%s)", self.state.mode.value)
        return True

    def stop(self):
        """Revoke the pending iteration."""
        self._scheduler.cancel(self._pending)
        self._pending = None
        if self.state.running:
            logger.info("Frame loop stopped after %d frames", self.state.frame_count)
        self.state.running = False

    def set_mode(self, mode: AppMode):
        """Switch mode: fresh debouncer with that mode's thresholds."""
        if mode is self.state.mode:
            return
        was_running = self.state.running
        self.stop()
        self.state.mode = mode
        self._debouncer = HoldDebouncer(self._config_for(mode))
        self._dispatcher.set_mode(mode)
        self._bus.emit(Events.MODE_CHANGED, mode=mode)
        if was_running:
            self.start()

    # -----------------------------------------------------------------
    # Iteration
    # -----------------------------------------------------------------

    def _schedule_next(self):
        self._pending = self._scheduler.call_later(self._interval, self._step, name="frame_loop")

    def _step(self):
        self._pending = None
        if not self.state.running:
            return
        if not self._camera.is_ready or not self._classifier.is_ready:
            logger.error("Camera or classifier went away, stopping frame loop")
            self._bus.emit(Events.CAMERA_ERROR, mode=self.state.mode)
            self.stop()
            return

        frame_id, frame = self._camera.read()
        if frame is not None:
            timestamp_ms = self._scheduler.now_ms()
            result = self._classifier.classify_frame(frame, timestamp_ms)
            self.state.last_frame = frame
            self.state.frame_count += 1
            self.process_sample(result.top_sample(timestamp_ms))

        self._schedule_next()

    def process_sample(self, sample: ClassificationSample) -> Optional[ConfirmedEvent]:
        """Debounce one sample and dispatch the resulting event, if any."""
        self.state.last_sample = sample
        if (self._raw_label_listener is not None
                and sample.confidence >= self._debouncer.config.min_confidence):
            self._raw_label_listener(sample.label)

        event = self._debouncer.observe(sample)
        if event is not None:
            self.state.last_event = event
            self.state.event_count += 1
            self._dispatcher.dispatch(event)
        return event

    @property
    def debouncer(self) -> HoldDebouncer:
        return self._debouncer

    @property
    def running(self) -> bool:
        return self.state.running
