from __future__ import annotations

from datetime import datetime, timedelta, timezone
import unittest

from firestore_event.values import GeoPoint, ReferencePath, Timestamp


class TimestampTest(unittest.TestCase):
    def test_from_rfc3339(self) -> None:
        self.assertEqual(
            Timestamp.from_rfc3339("2023-02-16T09:48:05.735Z"),
            Timestamp(seconds=1676540885, nanos=735000000),
        )
        self.assertEqual(Timestamp.from_rfc3339("1970-01-01T00:00:00Z"), Timestamp(seconds=0))
        self.assertEqual(
            Timestamp.from_rfc3339("1970-01-01T09:00:00+09:00"),
            Timestamp(seconds=0),
        )

    def test_invalid_rfc3339_raises(self) -> None:
        for raw in ("yesterday", "2023-02-16", "2023-02-30T00:00:00Z", "2023-02-16T09:48:05.1234567890Z"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    Timestamp.from_rfc3339(raw)

    def test_to_rfc3339(self) -> None:
        self.assertEqual(Timestamp(seconds=1676540885, nanos=735000000).to_rfc3339(), "2023-02-16T09:48:05.735Z")
        self.assertEqual(Timestamp(seconds=0).to_rfc3339(), "1970-01-01T00:00:00Z")
        self.assertEqual(str(Timestamp(seconds=-1, nanos=500000000)), "1969-12-31T23:59:59.5Z")

    def test_datetime_conversion(self) -> None:
        moment = datetime(2023, 2, 16, 9, 48, 5, 735000, tzinfo=timezone.utc)

        self.assertEqual(Timestamp.from_datetime(moment).to_datetime(), moment)
        self.assertEqual(
            Timestamp.from_datetime(moment.astimezone(timezone(timedelta(hours=9)))),
            Timestamp(seconds=1676540885, nanos=735000000),
        )

    def test_before_epoch_keeps_positive_nanos(self) -> None:
        moment = datetime(1969, 12, 31, 23, 59, 59, 500000, tzinfo=timezone.utc)

        self.assertEqual(Timestamp.from_datetime(moment), Timestamp(seconds=-1, nanos=500000000))

    def test_ordering(self) -> None:
        self.assertLess(Timestamp(seconds=1, nanos=0), Timestamp(seconds=1, nanos=5))
        self.assertLess(Timestamp(seconds=-1, nanos=999999999), Timestamp(seconds=0))

    def test_invalid_nanos_raises(self) -> None:
        with self.assertRaises(ValueError):
            Timestamp(seconds=0, nanos=1_000_000_000)
        with self.assertRaises(ValueError):
            Timestamp(seconds=0, nanos=-1)


class ReferencePathTest(unittest.TestCase):
    def test_document_reference(self) -> None:
        reference = ReferencePath.from_string(
            "projects/prj-1ab/databases/(default)/documents/offers/9jpnp0GakiAIHNEsdkFg/bids/b1"
        )

        self.assertEqual(reference.document_path, ("offers", "9jpnp0GakiAIHNEsdkFg", "bids", "b1"))
        self.assertEqual(reference.document_id, "b1")
        self.assertEqual(reference.collection_id, "bids")

    def test_relative_reference(self) -> None:
        reference = ReferencePath.from_string("offers/abc")

        self.assertEqual(reference.document_path, ("offers", "abc"))
        self.assertEqual(reference.collection_id, "offers")
        self.assertEqual(str(reference), "offers/abc")

    def test_single_segment(self) -> None:
        reference = ReferencePath.from_string("abc")

        self.assertEqual(reference.document_id, "abc")
        self.assertIsNone(reference.collection_id)


class GeoPointTest(unittest.TestCase):
    def test_value_equality(self) -> None:
        self.assertEqual(GeoPoint(latitude=1.5, longitude=-2.0), GeoPoint(1.5, -2.0))


if __name__ == "__main__":
    unittest.main()
