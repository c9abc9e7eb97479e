"""
Plain text status overlay for the camera window.

Draws the per-mode snapshot as a few lines of text; no layout beyond that.
"""

import logging
import cv2
import numpy as np

from core.types import ClassSnapshot, Phase, QuizSnapshot

logger = logging.getLogger(__name__)

_FONT = cv2.FONT_HERSHEY_SIMPLEX


def card_text(card) -> str:
    """One sign card as text: [x] where the letter has a sign image, else the fallback glyph."""
    return "".join(f"[{g.char}]" if g.has_image else g.fallback for g in card.glyphs)


class StatusOverlay:
    """Renders ClassSnapshot / QuizSnapshot onto a BGR frame."""

    def __init__(self, config: dict = None):
        config = config or {}
        colors = config.get("colors", {})
        self._color_text = tuple(colors.get("text", [255, 255, 255]))
        self._color_accent = tuple(colors.get("accent", [0, 255, 255]))
        self._color_good = tuple(colors.get("good", [0, 255, 0]))
        self._color_bad = tuple(colors.get("bad", [0, 0, 255]))
        self._opacity = config.get("opacity", 0.6)
        self._line_height = config.get("line_height", 26)

    def _panel(self, frame: np.ndarray, lines: int):
        h, w = frame.shape[:2]
        height = min(h, 20 + lines * self._line_height)
        overlay = frame.copy()
        cv2.rectangle(overlay, (0, 0), (w, height), (30, 30, 30), -1)
        cv2.addWeighted(overlay, self._opacity, frame, 1 - self._opacity, 0, frame)

    def _text(self, frame, text, row, color=None, scale=0.6):
        y = 24 + row * self._line_height
        cv2.putText(frame, text, (12, y), _FONT, scale, color or self._color_text, 2, cv2.LINE_AA)

    def render_class(self, frame: np.ndarray, snap: ClassSnapshot) -> np.ndarray:
        cards = "  ".join(card_text(c) for c in snap.cards) if snap.cards else "-"
        lines = [
            (f"Student: {snap.message}", self._color_accent),
            (f"Last sign: {snap.last_gesture}   Voice: {snap.voice_gender.value}", None),
            (f"Teacher {'(listening)' if snap.listening else '(paused)'}: {snap.transcript}", None),
            (f"Sign cards: {cards}", None),
        ]
        self._panel(frame, len(lines))
        for row, (text, color) in enumerate(lines):
            self._text(frame, text, row, color)
        return frame

    def render_quiz(self, frame: np.ndarray, snap: QuizSnapshot) -> np.ndarray:
        lines = []
        if snap.phase is Phase.MENU:
            lines.append(("Gesture Quiz  [s] start  [t] teacher mode", self._color_accent))
            if snap.notice:
                lines.append((snap.notice, self._color_bad))
        elif snap.phase is Phase.AUTHORING:
            lines.append((f"Teacher mode: {snap.question_count} questions  [Esc] menu",
                          self._color_accent))
        elif snap.phase in (Phase.ANSWERING, Phase.FEEDBACK):
            lines.append((f"Q{snap.question_number}/{snap.question_count}  "
                          f"Streak {snap.streak}  Score {snap.score}  {snap.seconds_remaining}s",
                          self._color_accent))
            lines.append((snap.question_text or "", None))
            mark_a = ">" if snap.selected_option and snap.selected_option.value == "A" else " "
            mark_b = ">" if snap.selected_option and snap.selected_option.value == "B" else " "
            lines.append((f"{mark_a} A: {snap.option_a}", None))
            lines.append((f"{mark_b} B: {snap.option_b}", None))
            if snap.phase is Phase.FEEDBACK:
                if snap.last_answer_correct:
                    lines.append(("NAILED IT!", self._color_good))
                else:
                    lines.append(("WRONG!", self._color_bad))
            lines.append((f"Detected: {snap.detected_gesture}", None))
        else:
            lines.append((f"Quiz completed! Final score {snap.score} "
                          f"({snap.question_count} questions)", self._color_good))
            lines.append(("[s] play again  [Esc] menu", None))

        self._panel(frame, len(lines))
        for row, (text, color) in enumerate(lines):
            self._text(frame, text, row, color)
        return frame
