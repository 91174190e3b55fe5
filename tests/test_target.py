from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import unittest

from firestore_event.target import INT32, INT64, MAP, TargetKind, TargetType
from firestore_event.values import Timestamp


class Level(str, Enum):
    LOW = "low"


class TargetTypeTest(unittest.TestCase):
    def test_of_python_types(self) -> None:
        self.assertEqual(TargetType.of(str).kind, TargetKind.STRING)
        self.assertEqual(TargetType.of(bool).kind, TargetKind.BOOLEAN)
        self.assertEqual(TargetType.of(int).kind, TargetKind.INT64)
        self.assertEqual(TargetType.of(float).kind, TargetKind.DOUBLE)
        self.assertEqual(TargetType.of(bytes).kind, TargetKind.BLOB)
        self.assertEqual(TargetType.of(datetime).kind, TargetKind.DATETIME)
        self.assertEqual(TargetType.of(Timestamp).kind, TargetKind.TIMESTAMP)

    def test_of_enum_class_wins_over_str_base(self) -> None:
        target = TargetType.of(Level)

        self.assertEqual(target, TargetType.enum(Level))
        self.assertEqual(target.name, "Level")

    def test_of_passthrough_and_unsupported(self) -> None:
        self.assertIs(TargetType.of(INT32), INT32)
        self.assertEqual(TargetType.of(TargetKind.MAP), MAP)
        self.assertEqual(TargetType.of(complex).kind, TargetKind.UNSUPPORTED)
        self.assertEqual(TargetType.of("string").kind, TargetKind.UNSUPPORTED)

    def test_accepts(self) -> None:
        self.assertTrue(INT64.accepts(5))
        self.assertFalse(INT64.accepts(True))
        self.assertFalse(INT64.accepts([5]))
        self.assertTrue(MAP.accepts({}))
        self.assertTrue(TargetType.of(datetime).accepts(datetime(2023, 1, 1, tzinfo=timezone.utc)))
        self.assertTrue(TargetType.enum(Level).accepts(Level.LOW))
        self.assertFalse(TargetType.enum(Level).accepts("low"))
        self.assertFalse(TargetType.of(complex).accepts(1j))


if __name__ == "__main__":
    unittest.main()
