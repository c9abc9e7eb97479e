"""
Live-class responder: a confirmed student gesture becomes a displayed
message and a spoken phrase.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from core.events import EventBus, Events
from core.types import NO_GESTURE, ConfirmedEvent, GestureLabel, VoiceGender
from modules.classroom.voices import VoiceRegistry, select_voice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GesturePhrase:
    """What a gesture says: icon is shown, text is shown and spoken."""
    text: str
    icon: str = ""

    @property
    def display(self) -> str:
        return f"{self.icon} {self.text}".strip()

    @classmethod
    def from_config(cls, value) -> "GesturePhrase":
        """Accept either a plain string or {text, icon}."""
        if isinstance(value, dict):
            return cls(text=str(value.get("text", "")), icon=str(value.get("icon", "")))
        return cls(text=str(value))


DEFAULT_PHRASES: Dict[str, GesturePhrase] = {
    GestureLabel.THUMB_UP: GesturePhrase("I understand!", "✅"),
    GestureLabel.THUMB_DOWN: GesturePhrase("I am confused / I have a doubt.", "❌"),
    GestureLabel.OPEN_PALM: GesturePhrase("I have a question.", "✋"),
    GestureLabel.VICTORY: GesturePhrase("May I go to the washroom?", "✌️"),
    GestureLabel.CLOSED_FIST: GesturePhrase("I am done writing.", "✍️"),
    GestureLabel.POINTING_UP: GesturePhrase("One minute please.", "☝️"),
}

IDLE_MESSAGE = "Waiting for signs..."


class LiveClassResponder:
    """Maps confirmed gestures to phrases and speaks them.

    Args:
        synthesizer: object with speak(text, voice) -> bool
        phrases: gesture label -> GesturePhrase; defaults to DEFAULT_PHRASES
        registry: voice registry used for gender-based voice selection
        voice_preferences: optional override of the preferred-voice lists
    """

    def __init__(self, synthesizer, phrases: Optional[Dict[str, GesturePhrase]] = None,
                 registry: VoiceRegistry = None, event_bus: EventBus = None,
                 gender: VoiceGender = VoiceGender.FEMALE,
                 voice_preferences: Optional[dict] = None):
        self._synth = synthesizer
        self._phrases = dict(phrases) if phrases is not None else dict(DEFAULT_PHRASES)
        self._registry = registry or VoiceRegistry()
        self._bus = event_bus or EventBus()
        self._gender = gender
        self._voice_preferences = voice_preferences
        self._message = IDLE_MESSAGE
        self._last_gesture = NO_GESTURE

    def on_confirmed_gesture(self, event: ConfirmedEvent):
        """Show and speak the phrase for `event.label`; unknown labels are ignored."""
        if event.is_preview:
            return
        phrase = self._phrases.get(event.label)
        if phrase is None:
            logger.debug("No phrase for gesture '%s'", event.label)
            return

        self._last_gesture = event.label
        self._message = phrase.display
        logger.info("Student says: %s (%s)", phrase.text, event.label)
        self._bus.emit(Events.MESSAGE_CHANGED, message=self._message, gesture=event.label)
        self._synth.speak(phrase.text, self.current_voice())

    def current_voice(self):
        """Voice for the current preference, or None for the engine default.

        Voices may not be known yet on the first attempt; that simply means
        the default voice is used.
        """
        self._registry.ensure_loaded()
        return select_voice(self._registry.voices, self._gender, self._voice_preferences)

    def toggle_voice(self) -> VoiceGender:
        self._gender = self._gender.toggled
        logger.info("Voice preference: %s", self._gender.value)
        return self._gender

    def set_voice_gender(self, gender: VoiceGender):
        self._gender = gender

    def reset(self):
        self._message = IDLE_MESSAGE
        self._last_gesture = NO_GESTURE

    @property
    def message(self) -> str:
        return self._message

    @property
    def last_gesture(self) -> str:
        return self._last_gesture

    @property
    def voice_gender(self) -> VoiceGender:
        return self._gender

    @property
    def phrases(self) -> Dict[str, GesturePhrase]:
        return dict(self._phrases)
