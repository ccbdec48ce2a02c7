"""Tests for deadline-bound handwriting recognition."""
import threading

from conftest import make_stroke

from inkplanner.core.recognition import transcribe


class TestTranscribe:
    def test_text_stripped(self):
        class Recognizer:
            def recognize(self, strokes):
                return "  hello world\n"

        assert transcribe(Recognizer(), [make_stroke()]) == "hello world"

    def test_no_strokes_skips_recognizer(self):
        class Recognizer:
            def recognize(self, strokes):
                raise AssertionError("should not run")

        assert transcribe(Recognizer(), []) == ""

    def test_failure_degrades_to_empty(self):
        class Recognizer:
            def recognize(self, strokes):
                raise RuntimeError("service down")

        assert transcribe(Recognizer(), [make_stroke()]) == ""

    def test_timeout_degrades_to_empty(self):
        release = threading.Event()

        class Slow:
            def recognize(self, strokes):
                release.wait(5)
                return "late"

        try:
            assert transcribe(Slow(), [make_stroke()], timeout=0.05) == ""
        finally:
            release.set()

    def test_late_recognizer_runs_on_daemon_thread(self):
        release = threading.Event()

        class Hung:
            def recognize(self, strokes):
                release.wait(5)
                return "late"

        try:
            assert transcribe(Hung(), [make_stroke()], timeout=0.05) == ""
            workers = [t for t in threading.enumerate() if t.name == "ink-recognition"]
            assert workers
            assert all(t.daemon for t in workers)
        finally:
            release.set()
