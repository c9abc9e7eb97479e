"""
Tests for the Transcript Tokenizer and Listener
================================================
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

import speech_recognition as sr

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.events import EventBus, Events
from modules.classroom.transcript import (
    MAX_PHRASES, PROMPT_TEXT, UNAVAILABLE_TEXT, TranscriptListener, render_words, tokenize,
)
from modules.visualization.overlay import card_text


@pytest.fixture
def bus():
    bus = EventBus()
    bus.reset()
    yield bus
    bus.reset()


class TestTokenize:

    def test_lowercases_and_splits(self):
        assert tokenize("  Hello   World ") == ["hello", "world"]

    def test_empty(self):
        assert tokenize("") == []
        assert tokenize("   ") == []
        assert tokenize(None) == []


class TestRenderWords:

    def test_only_last_five_words(self):
        words = tokenize("one two three four five six seven")
        cards = render_words(words)
        assert [c.word for c in cards] == ["three", "four", "five", "six", "seven"]

    def test_letters_with_and_without_images(self):
        [card] = render_words(["bad1"])
        glyphs = card.glyphs
        assert glyphs[0].has_image and glyphs[1].has_image and glyphs[2].has_image
        assert not glyphs[3].has_image
        assert glyphs[3].fallback == "1"

    def test_missing_letter_falls_back_to_uppercase(self):
        [card] = render_words(["zoo"], letter_signs={})
        assert [g.fallback for g in card.glyphs] == ["Z", "O", "O"]

    def test_card_text_marks_image_letters(self):
        [card] = render_words(["bag"])
        assert card_text(card) == "[b][a]G"


class FakeMicrophone:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class TestTranscriptListener:

    @pytest.fixture
    def recognizer(self):
        recognizer = MagicMock()
        recognizer.listen_in_background.return_value = MagicMock()
        return recognizer

    @pytest.fixture
    def listener(self, recognizer, bus):
        return TranscriptListener(recognizer=recognizer, microphone_factory=FakeMicrophone,
                                  event_bus=bus)

    def test_initial_prompt(self, listener):
        assert listener.transcript == PROMPT_TEXT
        assert listener.words == []

    def test_start_listens_in_background(self, listener, recognizer):
        assert listener.start()
        assert listener.listening
        recognizer.adjust_for_ambient_noise.assert_called_once()
        recognizer.listen_in_background.assert_called_once()

    def test_toggle_stops_background_listener(self, listener, recognizer):
        listener.toggle()
        stopper = recognizer.listen_in_background.return_value
        assert listener.toggle() is False
        stopper.assert_called_once_with(wait_for_stop=False)

    def test_poll_joins_phrases(self, listener, bus):
        updates = []
        bus.subscribe(Events.TRANSCRIPT_UPDATED, lambda transcript, words: updates.append(words))
        listener.start()
        listener.feed("Good morning")
        listener.feed("Open your books")
        assert listener.poll()
        assert listener.transcript == "Good morning Open your books"
        assert listener.words == ["good", "morning", "open", "your", "books"]
        assert len(updates) == 1
        assert listener.poll() is False

    def test_recognition_callback_enqueues_text(self, listener):
        fake = MagicMock()
        fake.recognize_google.return_value = "hello class"
        listener._on_audio(fake, object())
        listener.poll()
        assert listener.words == ["hello", "class"]

    def test_unintelligible_audio_ignored(self, listener):
        fake = MagicMock()
        fake.recognize_google.side_effect = sr.UnknownValueError()
        listener._on_audio(fake, object())
        assert listener.poll() is False

    def test_missing_microphone_shows_notice(self, bus):
        def no_mic():
            raise OSError("No Default Input Device Available")
        listener = TranscriptListener(recognizer=MagicMock(), microphone_factory=no_mic,
                                      event_bus=bus)
        assert listener.start() is False
        assert not listener.available
        assert listener.transcript == UNAVAILABLE_TEXT

    def test_transcript_history_is_bounded(self, listener):
        for i in range(MAX_PHRASES + 10):
            listener.feed(f"phrase{i}")
        listener.poll()
        assert len(listener.words) == MAX_PHRASES
        assert listener.words[0] == "phrase10"
        assert listener.words[-1] == f"phrase{MAX_PHRASES + 9}"

    def test_cards_follow_words(self, listener):
        listener.feed("a b c d e f")
        listener.poll()
        assert [c.word for c in listener.cards()] == ["b", "c", "d", "e", "f"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
