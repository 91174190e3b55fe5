from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Sequence

from firestore_event.wire import format_path


class EventKind(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    UNKNOWN = "UNKNOWN"


def _is_empty(values: Mapping[str, Any] | Sequence[str] | None) -> bool:
    return values is None or len(values) == 0


def is_created(
    previous_fields: Mapping[str, Any] | None,
    field_paths: Sequence[str] | None,
) -> bool:
    return _is_empty(previous_fields) and _is_empty(field_paths)


def is_updated(
    current_fields: Mapping[str, Any] | None,
    previous_fields: Mapping[str, Any] | None,
) -> bool:
    return not _is_empty(current_fields) and not _is_empty(previous_fields)


def is_deleted(
    current_fields: Mapping[str, Any] | None,
    previous_fields: Mapping[str, Any] | None,
) -> bool:
    return _is_empty(current_fields) and not _is_empty(previous_fields)


def is_field_changed(field_paths: Sequence[str] | None, path: str | Sequence[str]) -> bool:
    """Exact membership of a dotted path in the update mask; prefixes do not match."""

    if field_paths is None:
        return False
    dotted = path if isinstance(path, str) else format_path(path)
    return dotted in field_paths


def classify(
    current_fields: Mapping[str, Any] | None,
    previous_fields: Mapping[str, Any] | None,
    field_paths: Sequence[str] | None,
) -> EventKind:
    if is_deleted(current_fields, previous_fields):
        return EventKind.DELETED
    if is_created(previous_fields, field_paths):
        return EventKind.CREATED
    if is_updated(current_fields, previous_fields):
        return EventKind.UPDATED
    return EventKind.UNKNOWN
