"""
Shared domain types for the EchoLearn classroom assistant.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Gesture Labels
# =============================================================================

NO_GESTURE = "None"


class GestureLabel:
    """Category names produced by the MediaPipe gesture recognizer model."""
    NONE = NO_GESTURE
    THUMB_UP = "Thumb_Up"
    THUMB_DOWN = "Thumb_Down"
    OPEN_PALM = "Open_Palm"
    VICTORY = "Victory"
    CLOSED_FIST = "Closed_Fist"
    POINTING_UP = "Pointing_Up"
    I_LOVE_YOU = "ILoveYou"


class EventKind(Enum):
    """Stage of a debounced gesture event."""
    PREVIEW = "preview"    # lower threshold crossed (progressive mode only)
    CONFIRM = "confirm"    # confirmation / commit threshold crossed


class AppMode(Enum):
    """Top-level interaction modes."""
    CLASS = "class"
    QUIZ = "quiz"


# =============================================================================
# Quiz Types
# =============================================================================

class Option(Enum):
    """Answer options of a two-choice question."""
    A = "A"
    B = "B"

    @property
    def opposite(self) -> "Option":
        return Option.B if self is Option.A else Option.A

    @classmethod
    def from_string(cls, value: str) -> "Option":
        """Parse 'A'/'B' (case-insensitive)."""
        return cls(str(value).strip().upper())


class Phase(Enum):
    """Discrete state of the quiz turn engine."""
    MENU = "menu"
    AUTHORING = "authoring"
    ANSWERING = "answering"
    FEEDBACK = "feedback"
    COMPLETE = "complete"


class VoiceGender(Enum):
    FEMALE = "female"
    MALE = "male"

    @property
    def toggled(self) -> "VoiceGender":
        return VoiceGender.MALE if self is VoiceGender.FEMALE else VoiceGender.FEMALE


# =============================================================================
# Data Containers
# =============================================================================

@dataclass(frozen=True)
class ClassificationSample:
    """Top classifier candidate for one video frame."""
    label: str
    confidence: float
    timestamp_ms: int

    @classmethod
    def empty(cls, timestamp_ms: int) -> "ClassificationSample":
        """Sample used when the classifier saw no gesture at all."""
        return cls(label=NO_GESTURE, confidence=0.0, timestamp_ms=timestamp_ms)


@dataclass(frozen=True)
class ConfirmedEvent:
    """Debounced, edge-triggered gesture event."""
    label: str
    confirmed_at_ms: int
    kind: EventKind = EventKind.CONFIRM

    @property
    def is_preview(self) -> bool:
        return self.kind is EventKind.PREVIEW


@dataclass(frozen=True)
class DebounceState:
    """Read-only snapshot of the debouncer's hysteresis counter."""
    candidate_label: str = NO_GESTURE
    hold_count: int = 0
    last_confirmed_label: str = NO_GESTURE
    last_previewed_label: str = NO_GESTURE


@dataclass(frozen=True)
class QuestionRecord:
    """A two-choice quiz question authored by the teacher."""
    id: int
    text: str
    option_a: str
    option_b: str
    correct_option: Option

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "optionA": self.option_a,
            "optionB": self.option_b,
            "correct": self.correct_option.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionRecord":
        return cls(
            id=int(data["id"]),
            text=str(data["text"]),
            option_a=str(data["optionA"]),
            option_b=str(data["optionB"]),
            correct_option=Option.from_string(data.get("correct", "A")),
        )


@dataclass(frozen=True)
class QuizSnapshot:
    """Read-only view of the quiz for rendering."""
    phase: Phase
    question_text: Optional[str] = None
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    question_number: int = 0
    question_count: int = 0
    score: int = 0
    streak: int = 0
    seconds_remaining: int = 0
    selected_option: Optional[Option] = None
    submitted: bool = False
    last_answer_correct: Optional[bool] = None
    detected_gesture: str = NO_GESTURE
    notice: Optional[str] = None


@dataclass(frozen=True)
class ClassSnapshot:
    """Read-only view of the live-class mode for rendering."""
    message: str
    last_gesture: str
    voice_gender: VoiceGender
    listening: bool
    transcript: str
    words: tuple = ()
    cards: tuple = ()    # WordCard per visible word
