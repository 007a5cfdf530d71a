import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from cypher_trainer.codec import CorruptPayload, decode
from cypher_trainer.logging_utils import format_java_like


def _raise_wrapped() -> None:
    try:
        decode(b"bad")
    except CorruptPayload as exc:
        raise RuntimeError("exercise failed to load") from exc


class TestLoggingUtils(unittest.TestCase):
    def test_format_java_like_includes_location(self) -> None:
        try:
            decode(b"")
        except CorruptPayload as exc:
            output = format_java_like(exc)
        self.assertTrue(output.startswith("Exception (CorruptPayload):"))
        filename = os.path.basename(__file__)
        self.assertIn(f"{filename}:", output)
        self.assertIn("at decode(codec.py:", output)

    def test_format_java_like_includes_causes(self) -> None:
        try:
            _raise_wrapped()
        except RuntimeError as exc:
            output = format_java_like(exc)
        self.assertIn("Exception (RuntimeError): exercise failed to load", output)
        self.assertIn("Caused by (CorruptPayload):", output)
        self.assertIn("at _raise_wrapped", output)

    def test_frames_are_elided(self) -> None:
        def recurse(depth: int) -> None:
            if depth == 0:
                raise ValueError("deep")
            recurse(depth - 1)

        try:
            recurse(20)
        except ValueError as exc:
            output = format_java_like(exc, max_frames=4)
        self.assertIn("frames elided", output)


if __name__ == "__main__":
    unittest.main()
