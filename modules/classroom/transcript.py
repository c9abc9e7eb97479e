"""
Teacher speech -> sign cards.

The recogniser's background thread only pushes recognised phrases into a
queue; poll() drains it from the main loop, so the transcript and word list
are only touched on the UI thread.
"""

import logging
import queue
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import speech_recognition as sr

from core.events import EventBus, Events

logger = logging.getLogger(__name__)

VISIBLE_WORDS = 5

# Recognised phrases kept for the running transcript; older ones scroll off
MAX_PHRASES = 20

PROMPT_TEXT = "Press 'Start Class' and speak..."
UNAVAILABLE_TEXT = "Speech recognition unavailable. Check the microphone and PyAudio install."

DEFAULT_LETTER_SIGNS: Dict[str, str] = {
    "a": "https://upload.wikimedia.org/wikipedia/commons/2/27/Sign_language_A.svg",
    "b": "https://upload.wikimedia.org/wikipedia/commons/1/18/Sign_language_B.svg",
    "c": "https://upload.wikimedia.org/wikipedia/commons/e/e3/Sign_language_C.svg",
    "d": "https://upload.wikimedia.org/wikipedia/commons/0/06/Sign_language_D.svg",
    "e": "https://upload.wikimedia.org/wikipedia/commons/c/cd/Sign_language_E.svg",
}


def tokenize(transcript: str) -> List[str]:
    """Lower-case, trim and split on whitespace."""
    return (transcript or "").lower().strip().split()


@dataclass(frozen=True)
class SignGlyph:
    """One character of a word: an image reference or a literal fallback."""
    char: str
    image: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def fallback(self) -> str:
        return self.char.upper()


@dataclass(frozen=True)
class WordCard:
    word: str
    glyphs: Tuple[SignGlyph, ...]


def render_words(words: List[str], letter_signs: Dict[str, str] = None,
                 last_n: int = VISIBLE_WORDS) -> List[WordCard]:
    """Build sign cards for the last `last_n` words.

    Characters missing from the table (digits, punctuation, letters without
    an image) become uppercase fallback glyphs; nothing here raises.
    """
    table = DEFAULT_LETTER_SIGNS if letter_signs is None else letter_signs
    visible = words[-last_n:] if last_n > 0 else []
    return [
        WordCard(word, tuple(SignGlyph(ch, table.get(ch)) for ch in word))
        for word in visible
    ]


class TranscriptListener:
    """Continuous speech recognition with an on/off toggle.

    Args:
        recognizer: speech_recognition.Recognizer (injectable for tests)
        microphone_factory: zero-arg callable returning an audio source
    """

    def __init__(self, config: dict = None, recognizer=None, microphone_factory=None,
                 event_bus: EventBus = None):
        config = config or {}
        self._language = config.get("language", "en-US")
        self._phrase_time_limit = config.get("phrase_time_limit", 5)
        self._ambient_adjust_s = config.get("ambient_adjust_s", 0.5)

        self._recognizer = recognizer or sr.Recognizer()
        self._microphone_factory = microphone_factory or sr.Microphone
        self._bus = event_bus or EventBus()

        self._phrases = queue.Queue()
        self._stopper = None
        self._listening = False
        self._available = True
        self._transcript = PROMPT_TEXT
        self._heard = deque(maxlen=MAX_PHRASES)
        self._words: List[str] = []

    # -----------------------------------------------------------------
    # Toggle
    # -----------------------------------------------------------------

    def start(self) -> bool:
        """Begin listening. Returns False (and shows a notice) when unavailable."""
        if self._listening:
            return True
        try:
            microphone = self._microphone_factory()
            with microphone as source:
                self._recognizer.adjust_for_ambient_noise(source, duration=self._ambient_adjust_s)
            self._stopper = self._recognizer.listen_in_background(
                microphone, self._on_audio, phrase_time_limit=self._phrase_time_limit,
            )
        except (OSError, AttributeError) as e:
            # AttributeError is how speech_recognition reports a missing PyAudio
            logger.warning("Speech recognition unavailable: %s", e)
            self._available = False
            self._transcript = UNAVAILABLE_TEXT
            return False

        self._available = True
        self._listening = True
        self._heard = deque(maxlen=MAX_PHRASES)
        self._words = []
        logger.info("Listening for teacher speech (%s)", self._language)
        return True

    def stop(self):
        if self._stopper is not None:
            self._stopper(wait_for_stop=False)
            self._stopper = None
        if self._listening:
            logger.info("Stopped listening")
        self._listening = False

    def toggle(self) -> bool:
        """Flip listening on/off. Returns the new listening state."""
        if self._listening:
            self.stop()
        else:
            self.start()
        return self._listening

    # -----------------------------------------------------------------
    # Recognition (background thread) and draining (main thread)
    # -----------------------------------------------------------------

    def _on_audio(self, recognizer, audio):
        try:
            text = recognizer.recognize_google(audio, language=self._language)
        except sr.UnknownValueError:
            return
        except sr.RequestError as e:
            logger.warning("Speech service error: %s", e)
            return
        if text:
            self._phrases.put(text)

    def feed(self, text: str):
        """Queue a recognised phrase (also used by tests and scripted demos)."""
        self._phrases.put(text)

    def poll(self) -> bool:
        """Apply queued phrases. Returns True when the transcript changed."""
        changed = False
        while True:
            try:
                phrase = self._phrases.get_nowait()
            except queue.Empty:
                break
            self._heard.append(phrase.strip())
            changed = True

        if changed:
            self._transcript = " ".join(p for p in self._heard if p)
            self._words = tokenize(self._transcript)
            self._bus.emit(Events.TRANSCRIPT_UPDATED,
                           transcript=self._transcript, words=list(self._words))
        return changed

    def cards(self, letter_signs: Dict[str, str] = None) -> List[WordCard]:
        return render_words(self._words, letter_signs)

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def words(self) -> List[str]:
        return list(self._words)

    @property
    def listening(self) -> bool:
        return self._listening

    @property
    def available(self) -> bool:
        return self._available
