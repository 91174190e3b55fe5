"""Decoding of a single tagged value into the native type a lookup asks for.

The rule is chosen by the requested target kind, which then reads the one key
that kind understands.  A wrapper carrying some other tag therefore decodes to
``None`` (with a type mismatch diagnostic) instead of being reinterpreted.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
import re
from typing import Any, Callable

from firestore_event.diagnostics import DiagnosticKind, DiagnosticsSink, Severity
from firestore_event.target import TargetKind, TargetSpec, TargetType
from firestore_event.values import GeoPoint, ReferencePath, Timestamp
from firestore_event.wire import (
    BOOLEAN_VALUE,
    BYTES_VALUE,
    DOUBLE_VALUE,
    GEO_POINT_VALUE,
    INTEGER_VALUE,
    MAP_VALUE,
    NULL_VALUE,
    REFERENCE_VALUE,
    STRING_VALUE,
    TIMESTAMP_VALUE,
)


INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_SPECIAL_DOUBLES = frozenset(("NaN", "Infinity", "-Infinity"))


class DecodeError(ValueError):
    """Raised inside the decoder for a value that cannot be decoded; never leaves a lookup."""

    def __init__(self, kind: DiagnosticKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)


def unwrap_container(tag: str, payload: Any) -> Mapping[str, Any] | list[Any]:
    """Return the nested fields mapping of a mapValue or the value list of an arrayValue.

    Firestore writes an empty container as ``{}``, which unwraps to an empty
    mapping or list.
    """

    if not isinstance(payload, Mapping):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"{tag} payload must be an object: {payload!r}")
    if len(payload) == 0:
        return {} if tag == MAP_VALUE else []
    if len(payload) != 1:
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"Unexpected {tag} keys {sorted(payload)}")

    inner = next(iter(payload.values()))
    if tag == MAP_VALUE:
        if not isinstance(inner, Mapping):
            raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"{tag} must wrap an object: {inner!r}")
        return inner
    if not isinstance(inner, list):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"{tag} must wrap a list: {inner!r}")
    return inner


def convert(
    wrapper: Any,
    target: TargetSpec,
    *,
    sink: DiagnosticsSink,
    path: tuple[str, ...] = (),
) -> Any | None:
    target_type = TargetType.of(target)
    if wrapper is None:
        return None
    if not isinstance(wrapper, Mapping):
        sink.record(
            Severity.ERROR,
            f"Tagged value expected, got {type(wrapper).__name__}",
            kind=DiagnosticKind.MALFORMED_WRAPPER,
            path=path,
        )
        return None
    if len(wrapper) > 1:
        sink.record(
            Severity.ERROR,
            f"Unexpected Firestore keywords length {sorted(wrapper)}",
            kind=DiagnosticKind.MALFORMED_WRAPPER,
            path=path,
        )
        return None
    if NULL_VALUE in wrapper:
        return None

    handler = _HANDLERS.get(target_type.kind)
    if handler is None:
        sink.record(
            Severity.ERROR,
            f"Unsupported target type {target_type.name}",
            kind=DiagnosticKind.UNSUPPORTED_TARGET,
            path=path,
        )
        return None

    try:
        value = handler(wrapper, target_type)
    except DecodeError as exc:
        sink.record(Severity.ERROR, exc.message, kind=exc.kind, path=path)
        return None

    if value is None and wrapper:
        field_name = path[-1] if path else "-"
        sink.record(
            Severity.WARNING,
            f"Value for [{field_name}:{target_type.name}] not found, "
            f"but field has value of another type {dict(wrapper)}",
            kind=DiagnosticKind.TYPE_MISMATCH,
            path=path,
        )
    return value


def _parse_integer(raw: Any, target: TargetType, minimum: int, maximum: int) -> int:
    if isinstance(raw, bool):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"integerValue must not be a boolean: {raw}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _INTEGER_PATTERN.match(raw):
        value = int(raw)
    else:
        raise DecodeError(
            DiagnosticKind.UNPARSEABLE_LEAF,
            f"Value for {target.name} found, but it is not an integer: {raw!r}",
        )
    if not minimum <= value <= maximum:
        raise DecodeError(
            DiagnosticKind.UNPARSEABLE_LEAF,
            f"Value for {target.name} found, but {value} is out of range",
        )
    return value


def _to_int32(source: Mapping[str, Any], target: TargetType) -> int | None:
    raw = source.get(INTEGER_VALUE)
    return None if raw is None else _parse_integer(raw, target, INT32_MIN, INT32_MAX)


def _to_int64(source: Mapping[str, Any], target: TargetType) -> int | None:
    raw = source.get(INTEGER_VALUE)
    return None if raw is None else _parse_integer(raw, target, INT64_MIN, INT64_MAX)


def _to_double(source: Mapping[str, Any], target: TargetType) -> float | None:
    raw = source.get(DOUBLE_VALUE)
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"doubleValue must not be a boolean: {raw}")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str) and raw in _SPECIAL_DOUBLES:
        return float(raw)
    raise DecodeError(
        DiagnosticKind.UNPARSEABLE_LEAF,
        f"Value for {target.name} found, but it is not a number: {raw!r}",
    )


def _to_boolean(source: Mapping[str, Any], target: TargetType) -> bool | None:
    raw = source.get(BOOLEAN_VALUE)
    if raw is None or isinstance(raw, bool):
        return raw
    raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"booleanValue must be a boolean: {raw!r}")


def _to_string(source: Mapping[str, Any], target: TargetType) -> str | None:
    if REFERENCE_VALUE in source:
        raw = source[REFERENCE_VALUE]
    else:
        raw = source.get(STRING_VALUE)
    if raw is None or isinstance(raw, str):
        return raw
    raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"String payload expected: {raw!r}")


def _to_reference(source: Mapping[str, Any], target: TargetType) -> ReferencePath | None:
    raw = source.get(REFERENCE_VALUE)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"referenceValue must be a string: {raw!r}")
    return ReferencePath.from_string(raw)


def _coordinate(geo: Mapping[str, Any], name: str) -> float:
    # proto3 JSON omits zero-valued coordinates.
    raw = geo.get(name, 0.0)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"geoPointValue.{name} must be a number: {raw!r}")
    return float(raw)


def _to_geo_point(source: Mapping[str, Any], target: TargetType) -> GeoPoint | None:
    raw = source.get(GEO_POINT_VALUE)
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"geoPointValue must be an object: {raw!r}")
    return GeoPoint(latitude=_coordinate(raw, "latitude"), longitude=_coordinate(raw, "longitude"))


def _to_timestamp(source: Mapping[str, Any], target: TargetType) -> Timestamp | None:
    raw = source.get(TIMESTAMP_VALUE)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"timestampValue must be a string: {raw!r}")
    try:
        return Timestamp.from_rfc3339(raw)
    except ValueError as exc:
        raise DecodeError(DiagnosticKind.UNPARSEABLE_LEAF, f"Value for {target.name} found, but {exc}") from exc


def _to_datetime(source: Mapping[str, Any], target: TargetType) -> Any | None:
    timestamp = _to_timestamp(source, target)
    return None if timestamp is None else timestamp.to_datetime()


def _to_blob(source: Mapping[str, Any], target: TargetType) -> bytes | None:
    raw = source.get(BYTES_VALUE)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"bytesValue must be a base64 string: {raw!r}")
    try:
        return base64.b64decode(raw, validate=True)
    except binascii.Error as exc:
        raise DecodeError(DiagnosticKind.UNPARSEABLE_LEAF, f"Value for {target.name} found, but {exc}") from exc


def _to_map(source: Mapping[str, Any], target: TargetType) -> Mapping[str, Any] | None:
    raw = source.get(MAP_VALUE)
    if raw is None:
        return None
    return unwrap_container(MAP_VALUE, raw)


def _to_enum(source: Mapping[str, Any], target: TargetType) -> Any | None:
    if target.enum_class is None:
        raise DecodeError(DiagnosticKind.UNSUPPORTED_TARGET, "Enumeration target without an enum class")
    raw = source.get(STRING_VALUE)
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"stringValue must be a string: {raw!r}")
    try:
        return target.enum_class[raw]
    except KeyError as exc:
        raise DecodeError(
            DiagnosticKind.UNPARSEABLE_LEAF,
            f"Value for {target.name} found, but Enum value is unsupported {raw!r}",
        ) from exc


_HANDLERS: dict[TargetKind, Callable[[Mapping[str, Any], TargetType], Any]] = {
    TargetKind.INT32: _to_int32,
    TargetKind.INT64: _to_int64,
    TargetKind.DOUBLE: _to_double,
    TargetKind.BOOLEAN: _to_boolean,
    TargetKind.STRING: _to_string,
    TargetKind.REFERENCE: _to_reference,
    TargetKind.GEO_POINT: _to_geo_point,
    TargetKind.TIMESTAMP: _to_timestamp,
    TargetKind.DATETIME: _to_datetime,
    TargetKind.BLOB: _to_blob,
    TargetKind.MAP: _to_map,
    TargetKind.ENUM: _to_enum,
}

