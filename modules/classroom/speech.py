"""
Text-to-speech output driven from the main loop.

pyttsx3 runs in external-loop mode (startLoop(False) + iterate()) so speech
advances one step per frame on the UI thread instead of blocking it the way
runAndWait() would.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import pyttsx3

from modules.classroom.voices import VoiceRegistry

logger = logging.getLogger(__name__)


@dataclass
class SpeechConfig:
    """Speech synthesis configuration."""
    enabled: bool = True
    rate: int = 165          # words per minute
    volume: float = 1.0

    @classmethod
    def from_dict(cls, config: dict) -> "SpeechConfig":
        """Create config from dictionary."""
        return cls(
            enabled=config.get("enabled", True),
            rate=int(config.get("rate", 165)),
            volume=float(config.get("volume", 1.0)),
        )


class SpeechSynthesizer:
    """Fire-and-forget speaker; at most one utterance is audible at a time.

    When the engine cannot be created (no driver, no audio device, disabled
    in config) speak() logs the text and returns False instead of raising.
    """

    def __init__(self, config: Optional[SpeechConfig] = None, registry: VoiceRegistry = None):
        self.config = config or SpeechConfig()
        self._registry = registry or VoiceRegistry()
        self._engine = None
        self._default_voice_id = None
        self._loop_started = False
        self._utterances = 0

    def initialize(self) -> bool:
        """Create the pyttsx3 engine and start its external loop."""
        if not self.config.enabled:
            logger.info("Speech synthesis disabled in config")
            return False
        try:
            engine = pyttsx3.init()
            engine.setProperty("rate", self.config.rate)
            engine.setProperty("volume", self.config.volume)
            self._default_voice_id = engine.getProperty("voice")
            engine.startLoop(False)
        except Exception as e:
            logger.warning("Speech synthesis unavailable: %s", e)
            self._engine = None
            return False

        self._engine = engine
        self._loop_started = True
        self._registry.set_loader(lambda: engine.getProperty("voices"))
        self._registry.ensure_loaded()
        logger.info("Speech synthesis initialized (rate=%d, volume=%.1f)",
                    self.config.rate, self.config.volume)
        return True

    def speak(self, text: str, voice=None) -> bool:
        """Cancel anything in flight and queue `text`.

        Args:
            text: Phrase to say
            voice: pyttsx3 Voice (uses its id) or None for the default voice

        Returns:
            True when the utterance was handed to the engine
        """
        if not text:
            return False
        if self._engine is None:
            logger.info("[TTS unavailable] %s", text)
            return False

        try:
            if self._engine.isBusy():
                logger.debug("Cancelling in-flight utterance")
            self._engine.stop()
            voice_id = getattr(voice, "id", None) or self._default_voice_id
            if voice_id:
                self._engine.setProperty("voice", voice_id)
            self._engine.say(text)
        except Exception as e:
            logger.error("Speech failed: %s", e)
            return False

        self._utterances += 1
        logger.debug("Speaking (%s): %s", getattr(voice, "name", "default"), text)
        return True

    def pump(self):
        """Advance the engine one step; call once per frame."""
        if self._engine is not None and self._loop_started:
            try:
                self._engine.iterate()
            except Exception as e:
                logger.error("Speech engine iteration failed: %s", e)

    def close(self):
        """Stop speech and end the external loop."""
        if self._engine is None:
            return
        try:
            self._engine.stop()
            if self._loop_started:
                self._engine.endLoop()
        except Exception as e:
            logger.warning("Speech engine shutdown error: %s", e)
        self._loop_started = False
        self._engine = None
        logger.info("Speech synthesis closed")

    @property
    def available(self) -> bool:
        return self._engine is not None

    @property
    def utterance_count(self) -> int:
        return self._utterances
