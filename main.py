#!/usr/bin/env python3
"""
EchoLearn - gesture and speech classroom assistant
Main application entry point.

Architecture:
    - core.FrameLoop runs capture -> classify -> debounce -> dispatch
    - core.Scheduler drives the frame loop, quiz countdown and feedback delay
    - core.EventBus connects logging / overlay to the interaction modules

Usage:
    python main.py                         # Live class mode
    python main.py --mode quiz             # Gesture quiz
    python main.py --no-speech             # Disable text-to-speech
    python main.py --list-questions        # Print the question bank
    python main.py --add-question "2+2?" "4" "5" A
    python main.py --delete-question 1700000000000

Keys:
    q quit   m switch mode   l listen on/off   v voice female/male
    s start/restart quiz   t teacher mode   a/b select   Enter submit
    n next question   d delete last question (teacher mode)   Esc menu
"""

import sys
import os
import signal
import argparse
import logging

import cv2

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from modules.utils.config import Config
from modules.utils.logger import setup_logging, GestureLogger
from modules.capture.camera_manager import CameraManager
from modules.recognition.gesture_recognizer import GestureRecognizer
from modules.control.debouncer import DebouncerConfig
from modules.control.dispatcher import EventDispatcher
from modules.classroom.responder import LiveClassResponder, GesturePhrase
from modules.classroom.speech import SpeechSynthesizer, SpeechConfig
from modules.classroom.transcript import TranscriptListener
from modules.classroom.voices import VoiceRegistry
from modules.quiz.engine import QuizEngine, QuizConfig
from modules.quiz.store import QuestionStore
from modules.visualization.overlay import StatusOverlay

from core.events import EventBus, Events
from core.pipeline import FrameLoop
from core.scheduler import Scheduler
from core.types import AppMode, ClassSnapshot, Option, Phase, VoiceGender

logger = logging.getLogger(__name__)

KEY_ENTER = (10, 13)
KEY_ESC = 27


def build_question_store(config: Config) -> QuestionStore:
    path = config.resolve_path(config.get("storage.questions_file", "data/questions.json"))
    store = QuestionStore(path)
    store.load()
    return store


class EchoLearnApp:
    """Wires the interaction modules together and runs the UI loop."""

    def __init__(self, config: Config, mode: AppMode = AppMode.CLASS):
        self._config = config
        self._running = False

        self._bus = EventBus()
        self._scheduler = Scheduler()
        self._gesture_logger = GestureLogger()

        # Capture / recognition
        self._camera = CameraManager(config.camera)
        recognizer_cfg = dict(config.recognizer)
        recognizer_cfg["model_path"] = config.resolve_path(
            recognizer_cfg.get("model_path", "models/gesture_recognizer.task"))
        self._recognizer = GestureRecognizer(recognizer_cfg)

        # Live class
        self._voices = VoiceRegistry()
        self._speech = SpeechSynthesizer(SpeechConfig.from_dict(config.speech), self._voices)
        phrases = {label: GesturePhrase.from_config(value)
                   for label, value in config.phrases.items()} or None
        preferred = {VoiceGender(g): names
                     for g, names in config.preferred_voices.items()} or None
        self._responder = LiveClassResponder(
            self._speech, phrases=phrases, registry=self._voices, event_bus=self._bus,
            gender=VoiceGender(config.get("speech.default_gender", "female")),
            voice_preferences=preferred,
        )
        self._listener = TranscriptListener(config.listening, event_bus=self._bus)
        self._letter_signs = config.letter_signs or None

        # Quiz
        self._store = build_question_store(config)
        self._quiz = QuizEngine(self._store, self._scheduler,
                                QuizConfig.from_dict(config.quiz), event_bus=self._bus)

        # Frame loop
        self._dispatcher = EventDispatcher(self._responder, self._quiz, event_bus=self._bus)
        debounce = config.debouncing
        self._loop = FrameLoop(
            self._camera, self._recognizer, self._dispatcher, self._scheduler,
            debounce_configs={
                AppMode.CLASS: DebouncerConfig.from_dict(debounce.get("class", {})),
                AppMode.QUIZ: DebouncerConfig.from_dict(debounce.get("quiz", {})),
            },
            mode=mode,
            frame_interval_s=debounce.get("frame_interval_s", 0.0),
            raw_label_listener=self._quiz.note_raw_label,
            event_bus=self._bus,
        )

        self._overlay = StatusOverlay(config.visualization)

        self._bus.subscribe(Events.GESTURE_CONFIRMED, self._on_gesture_confirmed)
        self._bus.subscribe(Events.ANSWER_SUBMITTED, self._on_answer_submitted)
        self._bus.subscribe(Events.CAMERA_ERROR, self._on_camera_error)

        logger.info("EchoLearnApp initialized (mode=%s)", mode.value)

    # -----------------------------------------------------------------
    # Event handlers
    # -----------------------------------------------------------------

    def _on_gesture_confirmed(self, **kwargs):
        event = kwargs.get("event")
        mode = kwargs.get("mode")
        self._gesture_logger.log_gesture(event.label, event.kind.value, mode.value,
                                         event.confirmed_at_ms)

    def _on_answer_submitted(self, **kwargs):
        question = kwargs.get("question")
        choice = kwargs.get("choice")
        self._gesture_logger.log_answer(
            question.text if question else "", choice.value if choice else None,
            kwargs.get("correct", False), kwargs.get("timed_out", False),
            kwargs.get("score", 0), kwargs.get("streak", 0),
        )

    def _on_camera_error(self, **kwargs):
        logger.warning("Camera unavailable; showing placeholder frame")

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    def start(self) -> bool:
        """Open devices and run the main loop until quit."""
        if not self._camera.open():
            logger.error("Camera not ready. Gestures are disabled; keyboard controls still work.")
        if not self._recognizer.initialize():
            logger.error("Gesture model not loaded. Download gesture_recognizer.task into models/.")
        self._speech.initialize()

        self._loop.start()
        self._running = True
        self._bus.emit(Events.SYSTEM_STARTED, mode=self._loop.state.mode)
        self._run_main_loop()
        return True

    def _run_main_loop(self):
        window_name = self._config.get("visualization.window_name", "EchoLearn")
        show = self._config.get("visualization.enabled", True)

        while self._running:
            self._scheduler.run_pending()
            self._speech.pump()
            self._listener.poll()

            if show:
                frame = self._loop.state.last_frame
                frame = frame.copy() if frame is not None else self._camera.blank_frame()
                if self._loop.state.mode is AppMode.CLASS:
                    frame = self._overlay.render_class(frame, self.class_snapshot())
                else:
                    frame = self._overlay.render_quiz(frame, self._quiz.snapshot())
                cv2.imshow(window_name, frame)

            key = cv2.waitKey(1) & 0xFF
            if key != 0xFF:
                self._handle_key(key)

        self._shutdown()

    def _handle_key(self, key: int):
        if key == ord("q"):
            self._running = False
        elif key == ord("m"):
            self.switch_mode()
        elif key == ord("l"):
            self._listener.toggle()
        elif key == ord("v"):
            self._responder.toggle_voice()
        elif self._loop.state.mode is AppMode.QUIZ:
            self._handle_quiz_key(key)

    def _handle_quiz_key(self, key: int):
        quiz = self._quiz
        if key == ord("s"):
            quiz.start_session()
        elif key == ord("t"):
            quiz.open_authoring()
        elif key == KEY_ESC:
            quiz.back_to_menu()
        elif key == ord("a"):
            quiz.select_option(Option.A)
        elif key == ord("b"):
            quiz.select_option(Option.B)
        elif key in KEY_ENTER:
            quiz.submit_answer()
        elif key == ord("n"):
            quiz.advance()
        elif key == ord("d") and quiz.phase is Phase.AUTHORING and len(self._store):
            quiz.delete_question(self._store.questions[-1].id)

    def switch_mode(self):
        """Toggle class <-> quiz. Leaving the quiz drops it back to its menu."""
        new_mode = AppMode.QUIZ if self._loop.state.mode is AppMode.CLASS else AppMode.CLASS
        if new_mode is AppMode.CLASS:
            self._quiz.back_to_menu()
        self._loop.set_mode(new_mode)
        logger.info("Mode switched to: %s", new_mode.value)

    def class_snapshot(self) -> ClassSnapshot:
        return ClassSnapshot(
            message=self._responder.message,
            last_gesture=self._responder.last_gesture,
            voice_gender=self._responder.voice_gender,
            listening=self._listener.listening,
            transcript=self._listener.transcript,
            words=tuple(self._listener.words),
            cards=tuple(self._listener.cards(self._letter_signs)),
        )

    def _shutdown(self):
        """Clean shutdown of all modules."""
        logger.info("Shutting down...")
        self._running = False
        self._bus.emit(Events.SYSTEM_SHUTDOWN)
        # Mute teardown emits (quiz back to menu, loop stop)
        self._bus.set_enabled(False)
        self._loop.stop()
        self._quiz.back_to_menu()
        self._listener.stop()
        self._speech.close()
        self._scheduler.clear()
        self._camera.stop()
        self._recognizer.close()
        cv2.destroyAllWindows()

        summary = self._gesture_logger.summary()
        logger.info("Session: %d gestures, %d answers (%d correct, %d timeouts)",
                    summary["gestures"], summary["answers"],
                    summary["correct"], summary["timeouts"])
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


# =============================================================================
# Question bank commands
# =============================================================================

def run_question_command(args, config: Config) -> int:
    store = build_question_store(config)
    quiz = QuizEngine(store, Scheduler(), QuizConfig.from_dict(config.quiz))
    quiz.open_authoring()

    if args.add_question:
        text, option_a, option_b, correct = args.add_question
        record = quiz.add_question(text, option_a, option_b, correct)
        if record is None:
            logger.error("Question rejected: text and options must be non-empty, answer A or B")
            return 1
        logger.info("Added question %d", record.id)
    elif args.delete_question is not None:
        if not quiz.delete_question(args.delete_question):
            logger.error("No question with id %d", args.delete_question)
            return 1

    for i, q in enumerate(store.questions, start=1):
        print(f"Q{i} [{q.id}] {q.text}  A: {q.option_a}  B: {q.option_b}  Ans: {q.correct_option.value}")
    return 0


def parse_args():
    parser = argparse.ArgumentParser(
        description="EchoLearn - gesture and speech classroom assistant"
    )
    parser.add_argument(
        "--mode", choices=["class", "quiz"], default=None,
        help="Starting mode (default from config)"
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    parser.add_argument("--gestures", type=str, default=None, help="Path to gestures.yaml")
    parser.add_argument("--camera", type=int, default=None, help="Camera device ID")
    parser.add_argument("--model", type=str, default=None, help="Path to gesture_recognizer.task")
    parser.add_argument("--questions", type=str, default=None, help="Question bank JSON file")
    parser.add_argument("--no-speech", action="store_true", help="Disable text-to-speech")

    bank = parser.add_mutually_exclusive_group()
    bank.add_argument("--list-questions", action="store_true", help="Print the question bank")
    bank.add_argument(
        "--add-question", nargs=4, metavar=("TEXT", "OPTION_A", "OPTION_B", "CORRECT"),
        help="Append a question (CORRECT is A or B)"
    )
    bank.add_argument("--delete-question", type=int, metavar="ID", help="Delete a question by id")
    return parser.parse_args()


def main():
    args = parse_args()

    config = Config()
    config.load(config_path=args.config, gestures_path=args.gestures)

    overrides = {}
    if args.camera is not None:
        overrides.setdefault("camera", {})["device_id"] = args.camera
    if args.model:
        overrides.setdefault("recognizer", {})["model_path"] = args.model
    if args.questions:
        overrides.setdefault("storage", {})["questions_file"] = args.questions
    if args.no_speech:
        overrides.setdefault("speech", {})["enabled"] = False
    if overrides:
        config.override(overrides)

    log_cfg = config.get_section("logging")
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=config.resolve_path(log_cfg.get("file")) if log_cfg.get("file") else None,
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    if args.list_questions or args.add_question or args.delete_question is not None:
        sys.exit(run_question_command(args, config))

    mode = AppMode(args.mode or config.get("system.default_mode", "class"))

    logger.info("=" * 60)
    logger.info("  ECHOLEARN - Gesture & Speech Classroom Assistant")
    logger.info("  Version: %s", config.get("system.version", "1.0.0"))
    logger.info("  Mode: %s", mode.value)
    logger.info("=" * 60)

    app = EchoLearnApp(config, mode=mode)

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    app.start()


if __name__ == "__main__":
    main()
