#!/usr/bin/env python3
from __future__ import annotations

import argparse
import base64
from datetime import datetime
from enum import Enum
import json
import logging
from pathlib import Path
import sys
from typing import Any, Mapping, Sequence

from firestore_event.diagnostics import LoggingDiagnosticsSink
from firestore_event.event import EventPayloadError, FirestoreEvent
from firestore_event.reader import SnapshotReader
from firestore_event.settings import SettingsError, load_settings
from firestore_event.target import TargetKind, TargetType
from firestore_event.values import GeoPoint, ReferencePath, Timestamp
from firestore_event.wire import split_path


LOGGER = logging.getLogger(__name__)
SHAPES = ("value", "list", "map", "list-of-maps")
TYPE_CHOICES = tuple(kind.value for kind in TargetKind if kind not in (TargetKind.ENUM, TargetKind.UNSUPPORTED))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a Firestore document change event payload.")
    parser.add_argument("payload", help="Path to the event payload JSON file.")
    parser.add_argument("--path", default=None, help="Dotted field path to look up (e.g. items.inner.innerList).")
    parser.add_argument(
        "--type",
        dest="target",
        default=TargetKind.STRING.value,
        choices=TYPE_CHOICES,
        help="Native type requested at --path. Default: string",
    )
    parser.add_argument("--shape", default="value", choices=SHAPES, help="Expected result shape. Default: value")
    parser.add_argument("--previous", action="store_true", help="Read the snapshot from before the change.")
    return parser.parse_args(argv)


def to_json_value(value: Any) -> Any:
    if isinstance(value, Timestamp):
        return value.to_rfc3339()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, GeoPoint):
        return {"latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, ReferencePath):
        return str(value)
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, Mapping):
        return {str(key): to_json_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_json_value(item) for item in value]
    return value


def lookup(reader: SnapshotReader, *, path: tuple[str, ...], target: TargetType, shape: str) -> Any:
    if shape == "list":
        return reader.find_list(target, *path)
    if shape == "map":
        return reader.find_map(*path)
    if shape == "list-of-maps":
        return reader.find_list_of_maps(*path)
    return reader.find_value(target, *path)


def build_summary(event: FirestoreEvent, args: argparse.Namespace) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "kind": event.kind().value,
        "document": event.value.name or event.old_value.name,
        "create_time": to_json_value(event.create_time),
        "update_time": to_json_value(event.update_time),
        "old_create_time": to_json_value(event.old_create_time),
        "old_update_time": to_json_value(event.old_update_time),
        "changed_field_paths": list(event.changed_field_paths),
    }
    if args.path is not None:
        reader = event.previous if args.previous else event.current
        result = lookup(
            reader,
            path=split_path(args.path),
            target=TargetType.of(TargetKind(args.target)),
            shape=args.shape,
        )
        summary["path"] = args.path
        summary["snapshot"] = "previous" if args.previous else "current"
        summary["value"] = to_json_value(result)
    return summary


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings()
    except SettingsError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.path is not None:
        try:
            split_path(args.path)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return 2

    payload_path = Path(args.payload)
    if not payload_path.is_file():
        print(f"Payload file not found: {payload_path}", file=sys.stderr)
        return 2
    payload_size = payload_path.stat().st_size
    if payload_size > settings.event_payload_max_bytes:
        print(
            f"Payload is too large: {payload_size} bytes (limit {settings.event_payload_max_bytes}).",
            file=sys.stderr,
        )
        return 2

    sink = LoggingDiagnosticsSink(settings.diagnostics_logger)
    try:
        event = FirestoreEvent.from_json(payload_path.read_bytes(), sink=sink)
    except EventPayloadError as exc:
        LOGGER.error("Event payload rejected: file=%s error=%s", payload_path, exc)
        return 1

    print(json.dumps(build_summary(event, args), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
