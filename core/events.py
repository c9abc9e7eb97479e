"""
Lightweight event bus for decoupled inter-module communication.

The frame loop, quiz engine and live-class responder publish what happened;
the application shell, gesture logger and overlay subscribe to it.

Usage:
    bus = EventBus()
    bus.subscribe(Events.GESTURE_CONFIRMED, my_handler)
    bus.emit(Events.GESTURE_CONFIRMED, event=confirmed_event)
"""

import logging
import threading
from collections import defaultdict
from typing import Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Publish/subscribe event bus with priority ordering.

    Handlers run synchronously on the emitting thread. A failing handler is
    logged and skipped so one listener cannot break the frame loop.
    """

    _instance = None

    def __new__(cls):
        """Singleton pattern, one bus per application."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._listeners = defaultdict(list)  # event_name -> [(priority, callback)]
        self._lock = threading.Lock()
        self._enabled = True
        self._initialized = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register a listener for an event.

        Args:
            event_name: Event to listen for
            callback: Function to call. Receives **kwargs from emit().
            priority: Higher priority callbacks run first (default 0)
        """
        with self._lock:
            self._listeners[event_name].append((priority, callback))
            self._listeners[event_name].sort(key=lambda x: -x[0])
        logger.debug("Subscribed to '%s': %s (priority=%d)",
                     event_name, getattr(callback, "__name__", repr(callback)), priority)

    def emit(self, event_name: str, **kwargs):
        """Emit an event to all registered listeners.

        Args:
            event_name: Event name to emit
            **kwargs: Data passed to all listeners
        """
        if not self._enabled:
            return

        with self._lock:
            listeners = list(self._listeners.get(event_name, []))

        for priority, callback in listeners:
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, getattr(callback, "__name__", repr(callback)), e)

    def set_enabled(self, enabled: bool):
        """Mute or unmute the bus (the shell mutes it while tearing down)."""
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def reset(self):
        """Reset singleton state (for testing)."""
        self._listeners.clear()
        self._enabled = True


# =============================================================================
# Standard Event Names (constants to avoid typos)
# =============================================================================

class Events:
    """Standard event names used throughout the system."""

    # Recognition
    GESTURE_CONFIRMED = "gesture_confirmed"
    SELECTION_PREVIEW = "selection_preview"

    # Live class
    MESSAGE_CHANGED = "message_changed"
    TRANSCRIPT_UPDATED = "transcript_updated"

    # Quiz
    QUIZ_PHASE_CHANGED = "quiz_phase_changed"
    ANSWER_SUBMITTED = "answer_submitted"
    QUESTIONS_CHANGED = "questions_changed"

    # System
    CAMERA_ERROR = "camera_error"
    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
    MODE_CHANGED = "mode_changed"
