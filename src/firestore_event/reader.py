from __future__ import annotations

import copy
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, TypeVar

from firestore_event.diagnostics import DiagnosticKind, Severity
from firestore_event.navigator import FieldNavigator, Shape
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
    TargetSpec,
    TargetType,
)
from firestore_event.values import GeoPoint, ReferencePath, Timestamp

if TYPE_CHECKING:
    from firestore_event.event import DocumentSnapshot


EnumT = TypeVar("EnumT", bound=Enum)


def _detach(value: Any) -> Any:
    # Nested fields mappings belong to the event; callers get their own copy.
    if isinstance(value, Mapping):
        return copy.deepcopy(dict(value))
    return value


class SnapshotReader:
    """Fault-tolerant lookups over one document snapshot of an event.

    Every ``find_*`` method returns ``None`` (scalars) or an empty list/dict
    when the path is missing or the stored value does not fit the requested
    type.  The reason is reported to the diagnostics sink, never raised.
    Mappings in a result are deep copies, so changing them leaves the event
    untouched.
    """

    def __init__(self, snapshot: DocumentSnapshot, navigator: FieldNavigator) -> None:
        self._snapshot = snapshot
        self._navigator = navigator

    @property
    def name(self) -> str | None:
        return self._snapshot.name

    @property
    def document_id(self) -> str | None:
        return self._snapshot.document_id

    @property
    def create_time(self) -> datetime | None:
        return self._snapshot.create_time

    @property
    def update_time(self) -> datetime | None:
        return self._snapshot.update_time

    @property
    def fields(self) -> Mapping[str, Any]:
        return self._snapshot.fields or {}

    def find_value(self, target: TargetSpec, *path: str) -> Any | None:
        return self.find_value_in(self._snapshot.fields, target, *path)

    def find_value_in(self, fields: Mapping[str, Any] | None, target: TargetSpec, *path: str) -> Any | None:
        """Look up ``path`` starting from an arbitrary fields mapping.

        Used to continue into the maps returned by :meth:`find_list_of_maps`.
        """

        target_type = TargetType.of(target)
        decoded = self._navigator.locate(fields, target_type, path)
        if decoded.is_absent:
            return None
        if not target_type.accepts(decoded.value):
            self._navigator.sink.record(
                Severity.ERROR,
                f"Unexpected response type, {type(decoded.value).__name__} can't be cast to {target_type.name}",
                kind=DiagnosticKind.TYPE_MISMATCH,
                path=path,
            )
            return None
        return _detach(decoded.value)

    def find_string(self, *path: str) -> str | None:
        value = self.find_value(STRING, *path)
        return value or None

    def find_bool(self, *path: str) -> bool | None:
        return self.find_value(BOOLEAN, *path)

    def find_int(self, *path: str) -> int | None:
        return self.find_value(INT32, *path)

    def find_long(self, *path: str) -> int | None:
        return self.find_value(INT64, *path)

    def find_double(self, *path: str) -> float | None:
        return self.find_value(DOUBLE, *path)

    def find_geo_point(self, *path: str) -> GeoPoint | None:
        return self.find_value(GEO_POINT, *path)

    def find_timestamp(self, *path: str) -> Timestamp | None:
        return self.find_value(TIMESTAMP, *path)

    def find_datetime(self, *path: str) -> datetime | None:
        return self.find_value(DATETIME, *path)

    def find_blob(self, *path: str) -> bytes | None:
        return self.find_value(BLOB, *path)

    def find_reference(self, *path: str) -> ReferencePath | None:
        return self.find_value(REFERENCE, *path)

    def find_enum(self, enum_class: type[EnumT], *path: str) -> EnumT | None:
        return self.find_value(TargetType.enum(enum_class), *path)

    def find_list(self, target: TargetSpec, *path: str) -> list[Any]:
        decoded = self._navigator.locate(self._snapshot.fields, target, path)
        if decoded.is_absent:
            self._navigator.sink.record(
                Severity.WARNING,
                f"Value at path {list(path)} not found",
                kind=DiagnosticKind.PATH_NOT_FOUND,
                path=path,
            )
            return []
        if decoded.shape is not Shape.LIST:
            self._navigator.sink.record(
                Severity.ERROR,
                f"Value type of the response {type(decoded.value).__name__} is different as expected list",
                kind=DiagnosticKind.TYPE_MISMATCH,
                path=path,
            )
            return []
        return [_detach(item) for item in decoded.value]

    def find_list_of_maps(self, *path: str) -> list[dict[str, Any]]:
        return [dict(item) for item in self.find_list(MAP, *path)]

    def find_map(self, *path: str) -> dict[str, Any]:
        decoded = self._navigator.locate(self._snapshot.fields, MAP, path)
        if decoded.is_absent:
            self._navigator.sink.record(
                Severity.WARNING,
                f"Value at path {list(path)} not found",
                kind=DiagnosticKind.PATH_NOT_FOUND,
                path=path,
            )
            return {}
        if decoded.shape is not Shape.MAPPING:
            self._navigator.sink.record(
                Severity.ERROR,
                f"Value type of the response {type(decoded.value).__name__} is different as expected map",
                kind=DiagnosticKind.TYPE_MISMATCH,
                path=path,
            )
            return {}
        return _detach(decoded.value)
