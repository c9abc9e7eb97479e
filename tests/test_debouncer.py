"""
Tests for the Hold-Confirmation Debouncer
==========================================
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.types import NO_GESTURE, ClassificationSample, EventKind
from modules.control.debouncer import HoldDebouncer, DebouncerConfig


THRESHOLD = 3


def sample(label, confidence=0.9, ts=0):
    return ClassificationSample(label=label, confidence=confidence, timestamp_ms=ts)


def feed(debouncer, label, frames, confidence=0.9):
    """Feed `frames` identical samples and return the emitted events."""
    events = []
    for i in range(frames):
        event = debouncer.observe(sample(label, confidence, ts=i))
        if event is not None:
            events.append(event)
    return events


def frames_to_confirm(threshold):
    # First frame sets the candidate (hold 0); the counter must then exceed threshold
    return threshold + 2


class TestFireOnce:
    """Fire-once variant."""

    @pytest.fixture
    def debouncer(self):
        return HoldDebouncer(DebouncerConfig(min_confidence=0.5, confirm_frames=THRESHOLD))

    def test_low_confidence_never_emits(self, debouncer):
        """A stream below the confidence threshold never confirms anything."""
        assert feed(debouncer, "Thumb_Up", 100, confidence=0.3) == []
        assert debouncer.state.candidate_label == NO_GESTURE
        assert debouncer.state.hold_count == 0

    def test_confirms_once_hold_exceeds_threshold(self, debouncer):
        """Exactly one event once the counter passes the threshold."""
        assert feed(debouncer, "Thumb_Up", frames_to_confirm(THRESHOLD) - 1) == []
        events = feed(debouncer, "Thumb_Up", 1)
        assert len(events) == 1
        assert events[0].label == "Thumb_Up"
        assert events[0].kind is EventKind.CONFIRM

    def test_long_hold_emits_single_event(self, debouncer):
        """Holding for twice the threshold and more still fires once."""
        events = feed(debouncer, "Victory", 2 * THRESHOLD + 10)
        assert len(events) == 1

    def test_label_change_and_return_fires_again(self, debouncer):
        """A different label, then the original again, gives a new event each time."""
        first = feed(debouncer, "Victory", frames_to_confirm(THRESHOLD))
        other = feed(debouncer, "Open_Palm", frames_to_confirm(THRESHOLD))
        back = feed(debouncer, "Victory", frames_to_confirm(THRESHOLD))
        assert [e.label for e in first + other + back] == ["Victory", "Open_Palm", "Victory"]

    def test_gap_rearms_same_label(self, debouncer):
        """Low-confidence gap resets last confirmed, so the same gesture re-triggers."""
        assert len(feed(debouncer, "Thumb_Up", frames_to_confirm(THRESHOLD))) == 1
        debouncer.observe(sample("Thumb_Up", confidence=0.1))
        assert debouncer.state.last_confirmed_label == NO_GESTURE
        assert len(feed(debouncer, "Thumb_Up", frames_to_confirm(THRESHOLD))) == 1

    def test_flicker_without_gap_does_not_rearm(self, debouncer):
        """A one-frame flicker restarts the counter but the same label stays confirmed."""
        feed(debouncer, "Thumb_Up", frames_to_confirm(THRESHOLD))
        debouncer.observe(sample("Thumb_Down"))
        assert feed(debouncer, "Thumb_Up", 3 * THRESHOLD) == []

    def test_candidate_switch_restarts_counter(self, debouncer):
        """No partial credit carries across a candidate switch."""
        feed(debouncer, "Victory", THRESHOLD)
        debouncer.observe(sample("Pointing_Up"))
        assert debouncer.state.candidate_label == "Pointing_Up"
        assert debouncer.state.hold_count == 0

    def test_event_carries_frame_timestamp(self, debouncer):
        for i in range(frames_to_confirm(THRESHOLD)):
            event = debouncer.observe(sample("Thumb_Up", ts=1000 + i))
        assert event.confirmed_at_ms == 1000 + frames_to_confirm(THRESHOLD) - 1

    def test_reset(self, debouncer):
        feed(debouncer, "Thumb_Up", frames_to_confirm(THRESHOLD))
        debouncer.reset()
        assert debouncer.state.last_confirmed_label == NO_GESTURE
        assert debouncer.hold_progress == 0.0


class TestProgressive:
    """Preview-then-commit variant."""

    @pytest.fixture
    def debouncer(self):
        return HoldDebouncer(DebouncerConfig(min_confidence=0.6, preview_frames=2,
                                             confirm_frames=5))

    def test_preview_then_confirm(self, debouncer):
        """One PREVIEW at the lower threshold, one CONFIRM at the higher one."""
        events = feed(debouncer, "Pointing_Up", 20)
        assert [e.kind for e in events] == [EventKind.PREVIEW, EventKind.CONFIRM]
        assert all(e.label == "Pointing_Up" for e in events)

    def test_preview_frame_index(self, debouncer):
        assert feed(debouncer, "Victory", 3) == []
        events = feed(debouncer, "Victory", 1)
        assert len(events) == 1 and events[0].is_preview

    def test_switch_before_commit_previews_new_label(self, debouncer):
        """Changing gesture mid-hold previews the new one without committing the old."""
        first = feed(debouncer, "Pointing_Up", 4)
        second = feed(debouncer, "Victory", 4)
        assert [(e.label, e.kind) for e in first + second] == [
            ("Pointing_Up", EventKind.PREVIEW),
            ("Victory", EventKind.PREVIEW),
        ]

    def test_gap_resets_preview(self, debouncer):
        feed(debouncer, "Victory", 4)
        debouncer.observe(sample("Victory", confidence=0.2))
        assert debouncer.state.last_previewed_label == NO_GESTURE
        assert len(feed(debouncer, "Victory", 4)) == 1


class TestDebouncerConfig:
    """Config validation and construction."""

    def test_defaults(self):
        config = DebouncerConfig()
        assert config.min_confidence == 0.5
        assert config.confirm_frames == 15
        assert not config.progressive

    def test_from_dict(self):
        config = DebouncerConfig.from_dict(
            {"min_confidence": 0.6, "preview_frames": 15, "confirm_frames": 40})
        assert config.min_confidence == 0.6
        assert config.preview_frames == 15
        assert config.confirm_frames == 40
        assert config.progressive

    @pytest.mark.parametrize("kwargs", [
        {"min_confidence": 1.5},
        {"confirm_frames": 0},
        {"preview_frames": 10, "confirm_frames": 10},
        {"preview_frames": 0, "confirm_frames": 10},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            DebouncerConfig(**kwargs)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
