"""
Hold-confirmation debouncer with edge-triggered gesture events.

Raw per-frame classification flickers between neighbouring classes. The
debouncer requires a label to be seen on consecutive qualifying frames
before acting, and requires a label *change* before it fires again, so a
held gesture produces one event instead of one per frame.

Two variants, chosen by config:
    fire-once    - one CONFIRM event when the hold counter passes
                   confirm_frames.
    progressive  - a PREVIEW event when the counter passes preview_frames
                   (pending selection shown in the UI), then a CONFIRM event
                   when it passes confirm_frames (committed action).

A frame below min_confidence is a gap: candidate, counter and the
last-confirmed label all go back to "None", so repeating the same gesture
after lowering the hand triggers it again.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.types import (
    NO_GESTURE, ClassificationSample, ConfirmedEvent, DebounceState, EventKind,
)

logger = logging.getLogger(__name__)


@dataclass
class DebouncerConfig:
    """Debouncer thresholds."""
    min_confidence: float = 0.5          # samples below this are gaps
    confirm_frames: int = 15             # hold counter must exceed this
    preview_frames: Optional[int] = None  # set to enable progressive mode

    def __post_init__(self):
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be in [0, 1], got {self.min_confidence}")
        if self.confirm_frames < 1:
            raise ValueError(f"confirm_frames must be >= 1, got {self.confirm_frames}")
        if self.preview_frames is not None:
            if self.preview_frames < 1:
                raise ValueError(f"preview_frames must be >= 1, got {self.preview_frames}")
            if self.preview_frames >= self.confirm_frames:
                raise ValueError(
                    f"preview_frames ({self.preview_frames}) must be lower than "
                    f"confirm_frames ({self.confirm_frames})"
                )

    @property
    def progressive(self) -> bool:
        return self.preview_frames is not None

    @classmethod
    def from_dict(cls, config: dict) -> "DebouncerConfig":
        """Create config from dictionary."""
        preview = config.get("preview_frames")
        return cls(
            min_confidence=float(config.get("min_confidence", 0.5)),
            confirm_frames=int(config.get("confirm_frames", 15)),
            preview_frames=int(preview) if preview is not None else None,
        )


class HoldDebouncer:
    """Turns a per-frame label stream into edge-triggered ConfirmedEvents.

    Example:
        >>> debouncer = HoldDebouncer(DebouncerConfig(confirm_frames=15))
        >>> for sample in samples:
        ...     event = debouncer.observe(sample)
        ...     if event:
        ...         dispatcher.dispatch(event)
    """

    def __init__(self, config: Optional[DebouncerConfig] = None):
        self.config = config or DebouncerConfig()
        self._candidate = NO_GESTURE
        self._hold_count = 0
        self._last_confirmed = NO_GESTURE
        self._last_previewed = NO_GESTURE

    def observe(self, sample: ClassificationSample) -> Optional[ConfirmedEvent]:
        """Feed one frame's top classification.

        Returns:
            A ConfirmedEvent on the frame a threshold is crossed for a new
            label, otherwise None.
        """
        if sample.confidence < self.config.min_confidence:
            if self._candidate != NO_GESTURE or self._last_confirmed != NO_GESTURE:
                logger.debug("Gap (conf=%.2f), re-arming (was %s)",
                             sample.confidence, self._candidate)
            self._reset_state()
            return None

        if sample.label == self._candidate:
            self._hold_count += 1
        else:
            self._candidate = sample.label
            self._hold_count = 0

        if (self._hold_count > self.config.confirm_frames
                and self._candidate != self._last_confirmed):
            self._last_confirmed = self._candidate
            self._last_previewed = self._candidate
            logger.debug("Confirmed '%s' after %d frames", self._candidate, self._hold_count)
            return ConfirmedEvent(self._candidate, sample.timestamp_ms, EventKind.CONFIRM)

        if (self.config.progressive
                and self._hold_count > self.config.preview_frames
                and self._candidate != self._last_previewed):
            self._last_previewed = self._candidate
            logger.debug("Preview '%s' after %d frames", self._candidate, self._hold_count)
            return ConfirmedEvent(self._candidate, sample.timestamp_ms, EventKind.PREVIEW)

        return None

    def _reset_state(self):
        self._candidate = NO_GESTURE
        self._hold_count = 0
        self._last_confirmed = NO_GESTURE
        self._last_previewed = NO_GESTURE

    def reset(self):
        """Clear all state."""
        self._reset_state()

    @property
    def state(self) -> DebounceState:
        return DebounceState(
            candidate_label=self._candidate,
            hold_count=self._hold_count,
            last_confirmed_label=self._last_confirmed,
            last_previewed_label=self._last_previewed,
        )

    @property
    def hold_progress(self) -> float:
        """Fraction of the confirmation hold completed (0.0 - 1.0)."""
        if self._candidate == NO_GESTURE:
            return 0.0
        return min(1.0, self._hold_count / float(self.config.confirm_frames + 1))
