"""
Ordered, teacher-editable question list persisted as JSON.

The in-memory list is authoritative; the file is rewritten after every add
or delete and read once at startup.
"""

import os
import json
import time
import logging
from typing import List, Optional

from core.events import EventBus, Events
from core.types import Option, QuestionRecord

logger = logging.getLogger(__name__)


DEFAULT_QUESTIONS = [
    {"id": 1, "text": "Which hand gesture means 'Yes'?",
     "optionA": "Thumb Up", "optionB": "Thumb Down", "correct": "A"},
    {"id": 2, "text": "What is the capital of India?",
     "optionA": "Mumbai", "optionB": "New Delhi", "correct": "B"},
    {"id": 3, "text": "Is Next.js a React Framework?",
     "optionA": "Yes", "optionB": "No", "correct": "A"},
]


class QuestionStore:
    """Question records in insertion (= presentation) order."""

    def __init__(self, path: Optional[str] = None, event_bus: EventBus = None,
                 clock=time.time):
        self._path = path
        self._bus = event_bus or EventBus()
        self._clock = clock
        self._questions: List[QuestionRecord] = []
        self._last_id = 0

    # -----------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------

    def load(self, use_defaults: bool = True) -> int:
        """Read the saved list; fall back to the built-in set when absent.

        Returns:
            Number of questions loaded
        """
        records = None
        if self._path:
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                records = [QuestionRecord.from_dict(item) for item in data]
                logger.info("Loaded %d questions from %s", len(records), self._path)
            except FileNotFoundError:
                logger.info("No saved questions at %s", self._path)
            except OSError as e:
                logger.error("Cannot read question file %s: %s", self._path, e)
            except (ValueError, KeyError, TypeError) as e:
                logger.error("Corrupt question file %s: %s", self._path, e)

        if records is None:
            records = ([QuestionRecord.from_dict(item) for item in DEFAULT_QUESTIONS]
                       if use_defaults else [])

        self._questions = records
        self._last_id = max((q.id for q in records), default=0)
        return len(records)

    def save(self) -> bool:
        """Write the full list back. Failures are logged, never raised."""
        if not self._path:
            return False
        try:
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump([q.to_dict() for q in self._questions], f, indent=2, ensure_ascii=False)
            logger.debug("Saved %d questions to %s", len(self._questions), self._path)
            return True
        except OSError as e:
            logger.error("Failed to save questions: %s", e)
            return False

    # -----------------------------------------------------------------
    # Authoring
    # -----------------------------------------------------------------

    def add(self, text: str, option_a: str, option_b: str,
            correct: Option = Option.A) -> Optional[QuestionRecord]:
        """Append a question. Blank text or options are rejected (returns None)."""
        text, option_a, option_b = (s.strip() if s else "" for s in (text, option_a, option_b))
        if not text or not option_a or not option_b:
            logger.warning("Rejected question: text and both options are required")
            return None
        if not isinstance(correct, Option):
            try:
                correct = Option.from_string(correct)
            except ValueError:
                logger.warning("Rejected question: correct answer must be A or B, got %r", correct)
                return None

        record = QuestionRecord(
            id=self._next_id(),
            text=text,
            option_a=option_a,
            option_b=option_b,
            correct_option=correct,
        )
        self._questions.append(record)
        logger.info("Question added (id=%d): %s", record.id, record.text)
        self._changed()
        return record

    def delete(self, question_id: int) -> bool:
        before = len(self._questions)
        self._questions = [q for q in self._questions if q.id != question_id]
        if len(self._questions) == before:
            logger.debug("Delete ignored, no question with id %s", question_id)
            return False
        logger.info("Question deleted (id=%d)", question_id)
        self._changed()
        return True

    def _next_id(self) -> int:
        """Creation time in ms, bumped to stay unique and increasing."""
        candidate = int(self._clock() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return self._last_id

    def _changed(self):
        self.save()
        self._bus.emit(Events.QUESTIONS_CHANGED, count=len(self._questions))

    # -----------------------------------------------------------------
    # Access
    # -----------------------------------------------------------------

    @property
    def questions(self) -> List[QuestionRecord]:
        return list(self._questions)

    def get(self, question_id: int) -> Optional[QuestionRecord]:
        for q in self._questions:
            if q.id == question_id:
                return q
        return None

    def __len__(self):
        return len(self._questions)

    @property
    def path(self) -> Optional[str]:
        return self._path
