"""
System voice registry and gender-preference voice selection.

The TTS engine may report an empty voice list at startup and a full one a
moment later, so the list lives in a process-wide registry that is filled
lazily and exposes an explicit is_ready predicate. Selection never fails:
when nothing matches, it returns None and the engine keeps its default
voice.
"""

import logging
import re
from typing import Callable, Iterable, Optional, Sequence

from core.types import VoiceGender

logger = logging.getLogger(__name__)


# Known good voices, best first. Matched as case-insensitive substrings of
# the voice name so "Microsoft Zira Desktop" matches "Microsoft Zira".
PREFERRED_VOICES = {
    VoiceGender.FEMALE: [
        "Google UK English Female",
        "Google US English",
        "Microsoft Aria",
        "Microsoft Zira",
        "Samantha",
        "Victoria",
        "Karen",
        "Moira",
        "Tessa",
    ],
    VoiceGender.MALE: [
        "Google UK English Male",
        "Microsoft Guy",
        "Microsoft David",
        "Microsoft Mark",
        "Daniel",
        "Alex",
        "Fred",
        "Rishi",
    ],
}


def _voice_name(voice) -> str:
    return str(getattr(voice, "name", "") or "")


def select_voice(voices: Sequence, gender: VoiceGender,
                 preferences: Optional[dict] = None):
    """Pick a voice for the requested gender.

    Order of preference:
        1. first entry of the preference list present in `voices`
        2. any voice whose name contains the gender word
        3. None (platform default)

    Args:
        voices: objects with a `name` attribute (pyttsx3 Voice objects)
        gender: requested VoiceGender
        preferences: optional override of PREFERRED_VOICES

    Returns:
        The chosen voice object or None
    """
    if not voices:
        return None

    preferred = (preferences or PREFERRED_VOICES).get(gender, [])
    for wanted in preferred:
        wanted_lower = wanted.lower()
        for voice in voices:
            if wanted_lower in _voice_name(voice).lower():
                return voice

    # Whole word, otherwise "male" would match every "Female" voice
    word = re.compile(r"\b%s\b" % re.escape(gender.value), re.IGNORECASE)
    for voice in voices:
        if word.search(_voice_name(voice)):
            return voice

    return None


class VoiceRegistry:
    """Process-wide, lazily populated list of installed TTS voices."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._voices = []
            cls._instance._loader = None
        return cls._instance

    def set_loader(self, loader: Callable[[], Iterable]):
        """Register the callable that queries the engine for its voices."""
        self._loader = loader

    def populate(self, voices: Iterable):
        self._voices = list(voices or [])
        if self._voices:
            logger.info("Voice registry ready: %d voices", len(self._voices))

    def ensure_loaded(self) -> bool:
        """Try the loader once more if the list is still empty.

        Returns:
            True when voices are available
        """
        if self._voices or self._loader is None:
            return self.is_ready
        try:
            self.populate(self._loader())
        except Exception as e:
            logger.warning("Voice list unavailable: %s", e)
        return self.is_ready

    @property
    def is_ready(self) -> bool:
        return bool(self._voices)

    @property
    def voices(self) -> list:
        return list(self._voices)

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
