"""
Structured logging with gesture and quiz event logging.
"""

import os
import logging
import logging.handlers
import time


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure structured logging for the application."""
    # Compact console format
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    # Verbose format for log file
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GestureLogger:
    """Session log of confirmed gestures and quiz answers."""

    def __init__(self, max_history: int = 500):
        self.logger = logging.getLogger("gesture_events")
        self._history = []
        self._max_history = max_history

    def _record(self, entry: dict):
        entry["timestamp"] = time.time()
        self._history.append(entry)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def log_gesture(self, label, kind, mode, confirmed_at_ms=None):
        """Log a debounced gesture event."""
        self._record({"type": "gesture", "gesture": label, "kind": kind, "mode": mode})
        self.logger.info(
            "Gesture: %-12s | Kind: %-7s | Mode: %-5s | t=%s",
            label, kind, mode,
            f"{confirmed_at_ms}ms" if confirmed_at_ms is not None else "N/A",
        )

    def log_answer(self, question_text, choice, correct, timed_out, score, streak):
        """Log a submitted quiz answer."""
        self._record({
            "type": "answer", "question": question_text, "choice": choice,
            "correct": correct, "timed_out": timed_out,
        })
        self.logger.info(
            "Answer: %-3s | %-7s%s | Score: %d | Streak: %d",
            choice or "-", "correct" if correct else "wrong",
            " (timeout)" if timed_out else "", score, streak,
        )

    def get_history(self, last_n=None):
        """Get recent history."""
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    def summary(self) -> dict:
        gestures = [e for e in self._history if e["type"] == "gesture"]
        answers = [e for e in self._history if e["type"] == "answer"]
        return {
            "gestures": len(gestures),
            "answers": len(answers),
            "correct": sum(1 for e in answers if e["correct"]),
            "timeouts": sum(1 for e in answers if e["timed_out"]),
        }

    @property
    def total_gestures(self):
        return sum(1 for e in self._history if e["type"] == "gesture")
