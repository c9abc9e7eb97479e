"""
Routes debounced gesture events to the consumer for the active mode.
"""

import logging

from core.events import EventBus, Events
from core.types import AppMode, ConfirmedEvent

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Sends each ConfirmedEvent to the live-class responder or the quiz.

    Args:
        responder: object with on_confirmed_gesture(event)
        quiz: object with on_gesture_event(event)
    """

    def __init__(self, responder, quiz, event_bus: EventBus = None,
                 mode: AppMode = AppMode.CLASS):
        self._responder = responder
        self._quiz = quiz
        self._bus = event_bus or EventBus()
        self._mode = mode
        self._dispatched = 0

    def set_mode(self, mode: AppMode):
        if mode is self._mode:
            return
        old = self._mode
        self._mode = mode
        logger.info("Dispatcher mode: %s -> %s", old.value, mode.value)

    def dispatch(self, event: ConfirmedEvent):
        """Route one event. Announces it on the bus before handing it over."""
        self._dispatched += 1
        if event.is_preview:
            self._bus.emit(Events.SELECTION_PREVIEW, event=event, mode=self._mode)
        else:
            self._bus.emit(Events.GESTURE_CONFIRMED, event=event, mode=self._mode)

        if self._mode is AppMode.CLASS:
            self._responder.on_confirmed_gesture(event)
        else:
            self._quiz.on_gesture_event(event)

    @property
    def mode(self) -> AppMode:
        return self._mode

    @property
    def dispatched_count(self) -> int:
        return self._dispatched
