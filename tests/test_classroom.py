"""
Tests for the Live-Class Responder, Voice Selection and Speech Output
======================================================================
"""

import pytest
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.events import EventBus, Events
from core.types import ConfirmedEvent, EventKind, VoiceGender
from modules.classroom.responder import (
    DEFAULT_PHRASES, IDLE_MESSAGE, GesturePhrase, LiveClassResponder,
)
from modules.classroom.speech import SpeechConfig, SpeechSynthesizer
from modules.classroom.voices import VoiceRegistry, select_voice


def voice(name, voice_id=None):
    return SimpleNamespace(name=name, id=voice_id or name.lower().replace(" ", "_"))


@pytest.fixture
def bus():
    bus = EventBus()
    bus.reset()
    yield bus
    bus.reset()


@pytest.fixture
def registry():
    VoiceRegistry.reset()
    registry = VoiceRegistry()
    yield registry
    VoiceRegistry.reset()


class FakeSynth:
    def __init__(self):
        self.spoken = []

    def speak(self, text, voice=None):
        self.spoken.append((text, voice))
        return True


# =============================================================================
# Voice selection
# =============================================================================

class TestSelectVoice:

    def test_empty_list_returns_none(self):
        assert select_voice([], VoiceGender.FEMALE) is None

    def test_preference_order_wins(self):
        voices = [voice("Microsoft Zira Desktop"), voice("Google UK English Female")]
        assert select_voice(voices, VoiceGender.FEMALE).name == "Google UK English Female"

    def test_gender_word_fallback(self):
        voices = [voice("Generic English Female"), voice("Generic English Male")]
        assert select_voice(voices, VoiceGender.MALE).name == "Generic English Male"
        assert select_voice(voices, VoiceGender.FEMALE).name == "Generic English Female"

    def test_male_does_not_match_female(self):
        assert select_voice([voice("Robot Female")], VoiceGender.MALE) is None

    def test_no_match_returns_none(self):
        assert select_voice([voice("espeak-default")], VoiceGender.FEMALE) is None

    def test_custom_preferences(self):
        voices = [voice("Alpha"), voice("Beta")]
        prefs = {VoiceGender.MALE: ["beta"]}
        assert select_voice(voices, VoiceGender.MALE, prefs).name == "Beta"


class TestVoiceRegistry:

    def test_singleton(self, registry):
        assert VoiceRegistry() is registry

    def test_lazy_loader_retried_until_ready(self, registry):
        answers = [[], [voice("Samantha")]]
        registry.set_loader(lambda: answers.pop(0))
        assert registry.ensure_loaded() is False
        assert registry.ensure_loaded() is True
        assert registry.voices[0].name == "Samantha"

    def test_loader_failure_logged_not_raised(self, registry):
        def broken():
            raise RuntimeError("driver gone")
        registry.set_loader(broken)
        assert registry.ensure_loaded() is False


# =============================================================================
# Responder
# =============================================================================

class TestLiveClassResponder:

    @pytest.fixture
    def synth(self):
        return FakeSynth()

    @pytest.fixture
    def responder(self, synth, registry, bus):
        return LiveClassResponder(synth, registry=registry, event_bus=bus)

    def test_initial_message(self, responder):
        assert responder.message == IDLE_MESSAGE

    def test_thumb_up_speaks_phrase(self, responder, synth):
        responder.on_confirmed_gesture(ConfirmedEvent("Thumb_Up", 100))
        assert responder.message == DEFAULT_PHRASES["Thumb_Up"].display
        assert responder.last_gesture == "Thumb_Up"
        assert synth.spoken == [("I understand!", None)]

    def test_unknown_label_ignored(self, responder, synth):
        responder.on_confirmed_gesture(ConfirmedEvent("ILoveYou", 100))
        responder.on_confirmed_gesture(ConfirmedEvent("None", 100))
        assert responder.message == IDLE_MESSAGE
        assert synth.spoken == []

    def test_preview_ignored(self, responder, synth):
        responder.on_confirmed_gesture(ConfirmedEvent("Victory", 0, EventKind.PREVIEW))
        assert synth.spoken == []

    def test_message_event(self, responder, bus):
        messages = []
        bus.subscribe(Events.MESSAGE_CHANGED, lambda message, gesture: messages.append(gesture))
        responder.on_confirmed_gesture(ConfirmedEvent("Open_Palm", 0))
        assert messages == ["Open_Palm"]

    def test_voice_follows_gender_preference(self, responder, synth, registry):
        registry.populate([voice("Microsoft Zira"), voice("Microsoft David")])
        responder.on_confirmed_gesture(ConfirmedEvent("Thumb_Up", 0))
        assert responder.toggle_voice() is VoiceGender.MALE
        responder.on_confirmed_gesture(ConfirmedEvent("Thumb_Down", 0))
        assert [v.name for _, v in synth.spoken] == ["Microsoft Zira", "Microsoft David"]

    def test_custom_phrases(self, synth, registry, bus):
        phrases = {"Thumb_Up": GesturePhrase.from_config({"text": "Got it", "icon": "+"})}
        responder = LiveClassResponder(synth, phrases=phrases, registry=registry, event_bus=bus)
        responder.on_confirmed_gesture(ConfirmedEvent("Victory", 0))
        responder.on_confirmed_gesture(ConfirmedEvent("Thumb_Up", 0))
        assert responder.message == "+ Got it"
        assert synth.spoken == [("Got it", None)]

    def test_reset(self, responder):
        responder.on_confirmed_gesture(ConfirmedEvent("Thumb_Up", 0))
        responder.reset()
        assert responder.message == IDLE_MESSAGE


# =============================================================================
# Speech synthesizer
# =============================================================================

class TestSpeechSynthesizer:

    @pytest.fixture
    def engine(self):
        engine = MagicMock()
        engine.getProperty.side_effect = lambda name: {
            "voice": "default_voice",
            "voices": [voice("Samantha", "samantha_id")],
        }[name]
        engine.isBusy.return_value = False
        return engine

    def test_initialize_starts_external_loop(self, engine, registry):
        with patch("modules.classroom.speech.pyttsx3.init", return_value=engine):
            synth = SpeechSynthesizer(SpeechConfig(rate=150), registry)
            assert synth.initialize()
        engine.setProperty.assert_any_call("rate", 150)
        engine.startLoop.assert_called_once_with(False)
        assert registry.is_ready

    def test_speak_cancels_previous_and_sets_voice(self, engine, registry):
        with patch("modules.classroom.speech.pyttsx3.init", return_value=engine):
            synth = SpeechSynthesizer(SpeechConfig(), registry)
            synth.initialize()
        assert synth.speak("I have a question.", voice("Samantha", "samantha_id"))
        engine.stop.assert_called()
        engine.setProperty.assert_any_call("voice", "samantha_id")
        engine.say.assert_called_once_with("I have a question.")
        assert synth.utterance_count == 1

    def test_speak_default_voice(self, engine, registry):
        with patch("modules.classroom.speech.pyttsx3.init", return_value=engine):
            synth = SpeechSynthesizer(SpeechConfig(), registry)
            synth.initialize()
        synth.speak("One minute please.")
        engine.setProperty.assert_any_call("voice", "default_voice")

    def test_unavailable_engine_never_raises(self, registry):
        with patch("modules.classroom.speech.pyttsx3.init", side_effect=RuntimeError("no driver")):
            synth = SpeechSynthesizer(SpeechConfig(), registry)
            assert synth.initialize() is False
        assert synth.speak("I understand!") is False
        synth.pump()
        synth.close()

    def test_disabled_in_config(self, registry):
        synth = SpeechSynthesizer(SpeechConfig(enabled=False), registry)
        assert synth.initialize() is False
        assert not synth.available

    def test_pump_and_close(self, engine, registry):
        with patch("modules.classroom.speech.pyttsx3.init", return_value=engine):
            synth = SpeechSynthesizer(SpeechConfig(), registry)
            synth.initialize()
        synth.pump()
        engine.iterate.assert_called_once()
        synth.close()
        engine.endLoop.assert_called_once()
        assert not synth.available

    def test_config_from_dict(self):
        config = SpeechConfig.from_dict({"enabled": False, "rate": 120})
        assert config.enabled is False
        assert config.rate == 120
        assert config.volume == 1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
