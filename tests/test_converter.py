from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import math
import unittest

from firestore_event.converter import DecodeError, convert, unwrap_container
from firestore_event.diagnostics import DiagnosticKind, RecordingDiagnosticsSink, Severity
from firestore_event.target import (
    BLOB,
    BOOLEAN,
    DATETIME,
    DOUBLE,
    GEO_POINT,
    INT32,
    INT64,
    MAP,
    REFERENCE,
    STRING,
    TIMESTAMP,
    TargetType,
)
from firestore_event.values import GeoPoint, ReferencePath, Timestamp


class Color(Enum):
    RED = "red"
    GREEN = "green"


class ConvertTest(unittest.TestCase):
    def setUp(self) -> None:
        self.sink = RecordingDiagnosticsSink()

    def convert(self, wrapper: object, target: object) -> object:
        return convert(wrapper, target, sink=self.sink, path=("field",))

    def test_integer_from_string_and_number(self) -> None:
        self.assertEqual(self.convert({"integerValue": "-17"}, INT64), -17)
        self.assertEqual(self.convert({"integerValue": 42}, INT32), 42)
        self.assertEqual(self.sink.records, [])

    def test_integer_range(self) -> None:
        self.assertEqual(self.convert({"integerValue": "2147483647"}, INT32), 2147483647)
        self.assertIsNone(self.convert({"integerValue": "2147483648"}, INT32))
        self.assertEqual(self.convert({"integerValue": "9223372036854775807"}, INT64), 9223372036854775807)
        self.assertIsNone(self.convert({"integerValue": "9223372036854775808"}, INT64))
        self.assertEqual(self.sink.kinds(), [DiagnosticKind.UNPARSEABLE_LEAF, DiagnosticKind.UNPARSEABLE_LEAF])

    def test_unparseable_integer_does_not_raise(self) -> None:
        self.assertIsNone(self.convert({"integerValue": "12abc"}, INT64))
        self.assertEqual(self.sink.records[0].severity, Severity.ERROR)
        self.assertEqual(self.sink.records[0].path, ("field",))

    def test_double(self) -> None:
        value = self.convert({"doubleValue": 5}, DOUBLE)
        self.assertIsInstance(value, float)
        self.assertEqual(value, 5.0)
        self.assertTrue(math.isnan(self.convert({"doubleValue": "NaN"}, DOUBLE)))
        self.assertEqual(self.convert({"doubleValue": "-Infinity"}, DOUBLE), float("-inf"))
        self.assertIsNone(self.convert({"doubleValue": "five"}, DOUBLE))

    def test_boolean(self) -> None:
        self.assertIs(self.convert({"booleanValue": False}, BOOLEAN), False)
        self.assertIsNone(self.convert({"booleanValue": "true"}, BOOLEAN))
        self.assertEqual(self.sink.kinds(), [DiagnosticKind.MALFORMED_WRAPPER])

    def test_string_reads_reference_first(self) -> None:
        self.assertEqual(self.convert({"stringValue": "plain"}, STRING), "plain")
        self.assertEqual(self.convert({"referenceValue": "a/b"}, STRING), "a/b")

    def test_reference(self) -> None:
        value = self.convert({"referenceValue": "projects/p/databases/(default)/documents/c/d"}, REFERENCE)

        self.assertIsInstance(value, ReferencePath)
        self.assertEqual(value.document_id, "d")
        self.assertIsNone(self.convert({"stringValue": "c/d"}, REFERENCE))

    def test_geo_point_with_omitted_coordinate(self) -> None:
        self.assertEqual(
            self.convert({"geoPointValue": {"latitude": 12.5}}, GEO_POINT),
            GeoPoint(latitude=12.5, longitude=0.0),
        )
        self.assertIsNone(self.convert({"geoPointValue": {"latitude": "north"}}, GEO_POINT))
        self.assertEqual(self.sink.kinds(), [DiagnosticKind.MALFORMED_WRAPPER])

    def test_timestamp_with_offset_and_nanos(self) -> None:
        with_offset = self.convert({"timestampValue": "2023-02-16T10:48:05.735+01:00"}, TIMESTAMP)
        in_utc = self.convert({"timestampValue": "2023-02-16T09:48:05.735Z"}, TIMESTAMP)
        precise = self.convert({"timestampValue": "2023-02-16T09:48:05.123456789Z"}, TIMESTAMP)

        self.assertEqual(with_offset, in_utc)
        self.assertEqual(precise, Timestamp(seconds=1676540885, nanos=123456789))

    def test_datetime_truncates_to_microseconds(self) -> None:
        value = self.convert({"timestampValue": "2023-02-16T09:48:05.123456789Z"}, DATETIME)

        self.assertEqual(value, datetime(2023, 2, 16, 9, 48, 5, 123456, tzinfo=timezone.utc))

    def test_unparseable_timestamp(self) -> None:
        self.assertIsNone(self.convert({"timestampValue": "yesterday"}, TIMESTAMP))
        self.assertEqual(self.sink.kinds(), [DiagnosticKind.UNPARSEABLE_LEAF])

    def test_blob(self) -> None:
        self.assertEqual(self.convert({"bytesValue": "aGVsbG8="}, BLOB), b"hello")
        self.assertIsNone(self.convert({"bytesValue": "%%%"}, BLOB))
        self.assertEqual(self.sink.kinds(), [DiagnosticKind.UNPARSEABLE_LEAF])

    def test_map(self) -> None:
        inner = {"a": {"stringValue": "x"}}

        self.assertEqual(self.convert({"mapValue": {"fields": inner}}, MAP), inner)
        self.assertEqual(self.convert({"mapValue": {}}, MAP), {})

    def test_enum_by_member_name(self) -> None:
        target = TargetType.enum(Color)

        self.assertIs(self.convert({"stringValue": "RED"}, target), Color.RED)
        self.assertIsNone(self.convert({"stringValue": "red"}, target))
        self.assertEqual(self.sink.kinds(), [DiagnosticKind.UNPARSEABLE_LEAF])

    def test_empty_enum_name_warns_like_any_empty_result(self) -> None:
        self.assertIsNone(self.convert({"stringValue": ""}, TargetType.enum(Color)))
        self.assertIsNone(self.convert({"booleanValue": None}, BOOLEAN))

        self.assertEqual(self.sink.kinds(), [DiagnosticKind.TYPE_MISMATCH, DiagnosticKind.TYPE_MISMATCH])
        self.assertEqual(self.sink.records[0].severity, Severity.WARNING)

    def test_null_value_for_any_target(self) -> None:
        for target in (STRING, INT64, DOUBLE, TIMESTAMP, MAP, TargetType.enum(Color)):
            self.assertIsNone(self.convert({"nullValue": None}, target))
        self.assertIsNone(self.convert(None, STRING))
        self.assertIsNone(self.convert({}, STRING))
        self.assertEqual(self.sink.records, [])

    def test_other_tag_is_type_mismatch_warning(self) -> None:
        self.assertIsNone(self.convert({"booleanValue": True}, STRING))

        record = self.sink.records[0]
        self.assertEqual(record.kind, DiagnosticKind.TYPE_MISMATCH)
        self.assertEqual(record.severity, Severity.WARNING)
        self.assertIn("[field:string]", record.message)

    def test_malformed_wrappers(self) -> None:
        self.assertIsNone(self.convert({"stringValue": "a", "integerValue": "1"}, STRING))
        self.assertIsNone(self.convert("raw string", STRING))
        self.assertEqual(
            self.sink.kinds(),
            [DiagnosticKind.MALFORMED_WRAPPER, DiagnosticKind.MALFORMED_WRAPPER],
        )

    def test_unsupported_target(self) -> None:
        self.assertIsNone(self.convert({"integerValue": "1"}, complex))
        self.assertEqual(self.sink.kinds(), [DiagnosticKind.UNSUPPORTED_TARGET])


class UnwrapContainerTest(unittest.TestCase):
    def test_empty_containers(self) -> None:
        self.assertEqual(unwrap_container("mapValue", {}), {})
        self.assertEqual(unwrap_container("arrayValue", {}), [])

    def test_values(self) -> None:
        values = [{"stringValue": "a"}]

        self.assertEqual(unwrap_container("arrayValue", {"values": values}), values)

    def test_malformed(self) -> None:
        with self.assertRaises(DecodeError) as context:
            unwrap_container("mapValue", {"fields": []})
        self.assertEqual(context.exception.kind, DiagnosticKind.MALFORMED_WRAPPER)

        with self.assertRaises(DecodeError):
            unwrap_container("arrayValue", {"values": {}})
        with self.assertRaises(DecodeError):
            unwrap_container("arrayValue", [])
        with self.assertRaises(DecodeError):
            unwrap_container("mapValue", {"fields": {}, "extra": 1})


if __name__ == "__main__":
    unittest.main()
