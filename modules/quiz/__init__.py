"""Gesture quiz."""
from .engine import QuizEngine, QuizConfig, SubmitPolicy, TimeoutPolicy
from .store import QuestionStore

__all__ = [
    "QuizEngine",
    "QuizConfig",
    "SubmitPolicy",
    "TimeoutPolicy",
    "QuestionStore",
]
