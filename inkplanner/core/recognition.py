"""
Best-effort handwriting transcription.
"""
import logging
import threading
from typing import Any, Dict, List, Protocol

from .document.models import InkStroke

logger = logging.getLogger(__name__)

DEFAULT_RECOGNITION_TIMEOUT = 2.0


class Recognizer(Protocol):
    """Turns ink strokes into plain text."""

    def recognize(self, strokes: List[InkStroke]) -> str: ...


def transcribe(recognizer: Recognizer, strokes: List[InkStroke],
               timeout: float = DEFAULT_RECOGNITION_TIMEOUT) -> str:
    """
    Run ``recognizer`` on ``strokes`` with a deadline.

    Returns the recognized text, or "" if there is no ink, the recognizer
    raised, or it missed the deadline. A late recognizer keeps running in a
    daemon thread, so it never holds up interpreter exit; its result is
    discarded.
    """
    if not strokes:
        return ""

    outcome: Dict[str, Any] = {}

    def run():
        try:
            outcome["text"] = recognizer.recognize(strokes)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=run, name="ink-recognition", daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        logger.warning("Handwriting recognition timed out after %.1fs", timeout)
        return ""
    if "error" in outcome:
        logger.warning("Handwriting recognition failed: %s", outcome["error"])
        return ""

    return (outcome.get("text") or "").strip()
