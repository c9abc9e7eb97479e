"""
Gesture quiz turn engine.

Phases:
    MENU -> AUTHORING            (teacher edits questions)
    MENU -> ANSWERING            (start_session)
    ANSWERING -> FEEDBACK        (submit_answer or countdown timeout)
    FEEDBACK -> ANSWERING        (advance, next question)
    FEEDBACK -> COMPLETE         (advance, last question)
    COMPLETE -> ANSWERING        (restart) or MENU

Two timers live on the shared Scheduler: the 1 s countdown, armed only
while ANSWERING, and the feedback display delay, armed only while FEEDBACK.
Each is cancelled on the way out of its phase so a stale callback can never
submit or advance twice.

Operations that do not apply to the current phase are ignored. They are
reachable through ordinary races between the frame loop and a phase change
and are not errors.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from core.events import EventBus, Events
from core.scheduler import Scheduler
from core.types import (
    NO_GESTURE, ConfirmedEvent, GestureLabel, Option, Phase, QuestionRecord, QuizSnapshot,
)

logger = logging.getLogger(__name__)

NO_QUESTIONS_NOTICE = "No questions loaded"


class SubmitPolicy(Enum):
    """How an answer gets committed by gesture."""
    HOLD = "hold"         # preview selects, holding on to the commit threshold submits
    GESTURE = "gesture"   # confirmed select gestures, then an explicit submit gesture


class TimeoutPolicy(Enum):
    """Which answer is recorded when the countdown runs out."""
    OPPOSITE = "opposite"   # opposite of the tentative selection, default option if none
    SELECTED = "selected"   # the tentative selection; no selection counts as wrong
    WRONG = "wrong"         # always counted wrong


@dataclass
class QuizConfig:
    """Quiz rules and gesture bindings."""
    question_seconds: int = 30
    feedback_delay_s: float = 2.0
    points_correct: int = 10
    streak_bonus: int = 2
    submit_policy: SubmitPolicy = SubmitPolicy.HOLD
    timeout_policy: TimeoutPolicy = TimeoutPolicy.OPPOSITE
    timeout_default_option: Option = Option.B
    select_a_gesture: str = GestureLabel.POINTING_UP
    select_b_gesture: str = GestureLabel.VICTORY
    submit_gesture: str = GestureLabel.CLOSED_FIST
    next_gesture: str = GestureLabel.OPEN_PALM

    @classmethod
    def from_dict(cls, config: dict) -> "QuizConfig":
        """Create config from dictionary."""
        gestures = config.get("gestures", {})
        return cls(
            question_seconds=int(config.get("question_seconds", 30)),
            feedback_delay_s=float(config.get("feedback_delay_s", 2.0)),
            points_correct=int(config.get("points_correct", 10)),
            streak_bonus=int(config.get("streak_bonus", 2)),
            submit_policy=SubmitPolicy(config.get("submit_policy", "hold")),
            timeout_policy=TimeoutPolicy(config.get("timeout_policy", "opposite")),
            timeout_default_option=Option.from_string(config.get("timeout_default_option", "B")),
            select_a_gesture=gestures.get("select_a", GestureLabel.POINTING_UP),
            select_b_gesture=gestures.get("select_b", GestureLabel.VICTORY),
            submit_gesture=gestures.get("submit", GestureLabel.CLOSED_FIST),
            next_gesture=gestures.get("next", GestureLabel.OPEN_PALM),
        )


class QuizEngine:
    """Turn-based quiz state machine driven by gestures and timers.

    Args:
        store: QuestionStore supplying and persisting questions
        scheduler: shared cooperative Scheduler for countdown / feedback delay
        config: QuizConfig
    """

    def __init__(self, store, scheduler: Scheduler, config: Optional[QuizConfig] = None,
                 event_bus: EventBus = None):
        self.config = config or QuizConfig()
        self._store = store
        self._scheduler = scheduler
        self._bus = event_bus or EventBus()

        self._phase = Phase.MENU
        self._questions: List[QuestionRecord] = []
        self._index = 0
        self._score = 0
        self._streak = 0
        self._seconds_remaining = self.config.question_seconds
        self._selected: Optional[Option] = None
        self._submitted = False
        self._last_correct: Optional[bool] = None
        self._notice: Optional[str] = None
        self._detected = NO_GESTURE

        self._countdown = None
        self._advance_timer = None

    # -----------------------------------------------------------------
    # Menu / authoring
    # -----------------------------------------------------------------

    def open_authoring(self) -> bool:
        if self._phase is not Phase.MENU:
            return False
        self._set_phase(Phase.AUTHORING)
        return True

    def back_to_menu(self):
        """Leave whatever is going on and return to the menu."""
        self._cancel_timers()
        self._set_phase(Phase.MENU)

    def add_question(self, text: str, option_a: str, option_b: str,
                     correct: Option = Option.A) -> Optional[QuestionRecord]:
        if self._phase is not Phase.AUTHORING:
            logger.debug("add_question ignored in phase %s", self._phase.value)
            return None
        return self._store.add(text, option_a, option_b, correct)

    def delete_question(self, question_id: int) -> bool:
        if self._phase is not Phase.AUTHORING:
            logger.debug("delete_question ignored in phase %s", self._phase.value)
            return False
        return self._store.delete(question_id)

    # -----------------------------------------------------------------
    # Session
    # -----------------------------------------------------------------

    def start_session(self, questions: Optional[List[QuestionRecord]] = None) -> bool:
        """Start (or restart) a quiz over `questions` (default: the store's list).

        Returns:
            False, with the phase left unchanged, when there are no questions
        """
        if self._phase not in (Phase.MENU, Phase.COMPLETE):
            logger.debug("start_session ignored in phase %s", self._phase.value)
            return False

        questions = list(self._store.questions if questions is None else questions)
        if not questions:
            self._notice = NO_QUESTIONS_NOTICE
            logger.warning("Cannot start quiz: no questions loaded")
            return False

        self._questions = questions
        self._index = 0
        self._score = 0
        self._streak = 0
        self._notice = None
        logger.info("Quiz started: %d questions", len(questions))
        self._begin_question()
        return True

    def select_option(self, choice: Option):
        if self._phase is not Phase.ANSWERING or self._submitted:
            return
        if choice is self._selected:
            return
        self._selected = choice
        logger.debug("Selected option %s", choice.value)

    def submit_answer(self):
        """Commit the current selection; needs one and an unsubmitted question."""
        if self._phase is not Phase.ANSWERING or self._submitted or self._selected is None:
            return
        self._resolve(self._selected, timed_out=False)

    def advance(self):
        """Move past the feedback screen: next question or results."""
        if self._phase is not Phase.FEEDBACK:
            return
        self._scheduler.cancel(self._advance_timer)
        self._advance_timer = None

        if self._index < len(self._questions) - 1:
            self._index += 1
            self._begin_question()
        else:
            logger.info("Quiz complete: score=%d over %d questions",
                        self._score, len(self._questions))
            self._set_phase(Phase.COMPLETE)

    # -----------------------------------------------------------------
    # Gesture input
    # -----------------------------------------------------------------

    def on_gesture_event(self, event: ConfirmedEvent):
        """Translate a debounced gesture into quiz operations."""
        cfg = self.config
        label = event.label

        if self._phase is Phase.FEEDBACK:
            if not event.is_preview and label == cfg.next_gesture:
                self.advance()
            return

        if self._phase is not Phase.ANSWERING or self._submitted:
            return

        choice = {cfg.select_a_gesture: Option.A, cfg.select_b_gesture: Option.B}.get(label)

        if not event.is_preview and label == cfg.submit_gesture:
            self.submit_answer()
        elif choice is not None:
            if cfg.submit_policy is SubmitPolicy.HOLD:
                self.select_option(choice)
                if not event.is_preview:
                    self.submit_answer()
            elif not event.is_preview:
                self.select_option(choice)

    def note_raw_label(self, label: str):
        """Latest above-threshold raw label, shown as the 'detected gesture' readout."""
        self._detected = label

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _begin_question(self):
        self._selected = None
        self._submitted = False
        self._last_correct = None
        self._seconds_remaining = self.config.question_seconds
        self._set_phase(Phase.ANSWERING)
        self._scheduler.cancel(self._countdown)
        self._countdown = self._scheduler.call_every(1.0, self._tick, name="quiz_countdown")

    def _tick(self):
        if self._phase is not Phase.ANSWERING or self._submitted:
            self._scheduler.cancel(self._countdown)
            self._countdown = None
            return
        if self._seconds_remaining <= 1:
            self._seconds_remaining = 0
            self._force_answer()
        else:
            self._seconds_remaining -= 1

    def _force_answer(self):
        policy = self.config.timeout_policy
        if policy is TimeoutPolicy.OPPOSITE:
            choice = (self._selected.opposite if self._selected is not None
                      else self.config.timeout_default_option)
        elif policy is TimeoutPolicy.SELECTED:
            choice = self._selected
        else:
            choice = None
        logger.info("Time up on question %d, forcing %s (policy=%s)",
                    self._index + 1, choice.value if choice else "no answer", policy.value)
        self._resolve(choice, timed_out=True)

    def _resolve(self, choice: Optional[Option], timed_out: bool):
        question = self._questions[self._index]
        correct = choice is not None and choice is question.correct_option

        if correct:
            self._score += self.config.points_correct + self._streak * self.config.streak_bonus
            self._streak += 1
        else:
            self._streak = 0

        if choice is not None:
            self._selected = choice
        self._submitted = True
        self._last_correct = correct

        self._scheduler.cancel(self._countdown)
        self._countdown = None
        self._set_phase(Phase.FEEDBACK)
        self._advance_timer = self._scheduler.call_later(
            self.config.feedback_delay_s, self.advance, name="quiz_feedback",
        )

        logger.info("Q%d answered %s: %s (score=%d, streak=%d)",
                    self._index + 1, choice.value if choice else "-",
                    "correct" if correct else "wrong", self._score, self._streak)
        self._bus.emit(Events.ANSWER_SUBMITTED, question=question, choice=choice,
                       correct=correct, timed_out=timed_out,
                       score=self._score, streak=self._streak)

    def _cancel_timers(self):
        self._scheduler.cancel(self._countdown)
        self._scheduler.cancel(self._advance_timer)
        self._countdown = None
        self._advance_timer = None

    def _set_phase(self, phase: Phase):
        if phase is self._phase:
            return
        old = self._phase
        self._phase = phase
        logger.debug("Quiz phase: %s -> %s", old.value, phase.value)
        self._bus.emit(Events.QUIZ_PHASE_CHANGED, old=old, new=phase)

    # -----------------------------------------------------------------
    # Read-only view
    # -----------------------------------------------------------------

    def snapshot(self) -> QuizSnapshot:
        question = None
        if self._phase in (Phase.ANSWERING, Phase.FEEDBACK):
            question = self._questions[self._index]
        return QuizSnapshot(
            phase=self._phase,
            question_text=question.text if question else None,
            option_a=question.option_a if question else None,
            option_b=question.option_b if question else None,
            question_number=self._index + 1 if question else 0,
            question_count=len(self._questions),
            score=self._score,
            streak=self._streak,
            seconds_remaining=self._seconds_remaining,
            selected_option=self._selected,
            submitted=self._submitted,
            last_answer_correct=self._last_correct,
            detected_gesture=self._detected,
            notice=self._notice,
        )

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def score(self) -> int:
        return self._score

    @property
    def streak(self) -> int:
        return self._streak

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def selected_option(self) -> Optional[Option]:
        return self._selected

    @property
    def submitted(self) -> bool:
        return self._submitted

    @property
    def seconds_remaining(self) -> int:
        return self._seconds_remaining

    @property
    def questions(self) -> List[QuestionRecord]:
        return list(self._questions)
