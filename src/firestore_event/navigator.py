from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from firestore_event.converter import DecodeError, convert, unwrap_container
from firestore_event.diagnostics import DiagnosticKind, DiagnosticsSink, LoggingDiagnosticsSink, Severity
from firestore_event.target import TargetSpec, TargetType
from firestore_event.wire import format_path, is_container_tag, is_leaf_tag, single_tag


class Shape(str, Enum):
    ABSENT = "ABSENT"
    SCALAR = "SCALAR"
    LIST = "LIST"
    MAPPING = "MAPPING"


@dataclass(frozen=True)
class Decoded:
    """Result of a path lookup: a decoded scalar, list or mapping, or nothing."""

    shape: Shape
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> "Decoded":
        if value is None:
            return ABSENT
        if isinstance(value, Mapping):
            return cls(shape=Shape.MAPPING, value=value)
        if isinstance(value, list):
            return cls(shape=Shape.LIST, value=value)
        return cls(shape=Shape.SCALAR, value=value)

    @property
    def is_absent(self) -> bool:
        return self.shape is Shape.ABSENT


ABSENT = Decoded(shape=Shape.ABSENT)


class FieldNavigator:
    """Walk a field path through nested tagged maps and lists.

    Every step unwraps one tagged value.  A leaf tag is decoded right away with
    the requested target, even when segments remain; the lookup then ends
    absent because a decoded leaf cannot be stepped into.  ``mapValue`` and
    ``arrayValue`` containers are unwrapped, and each element of an unwrapped
    list is decoded on its own, dropping the ones that fail.  Segments left
    after a list are ignored and the decoded list is the result.
    """

    def __init__(self, sink: DiagnosticsSink | None = None) -> None:
        self._sink = sink if sink is not None else LoggingDiagnosticsSink()

    @property
    def sink(self) -> DiagnosticsSink:
        return self._sink

    def locate(self, fields: Mapping[str, Any] | None, target: TargetSpec, path: Sequence[str]) -> Decoded:
        target_type = TargetType.of(target)
        segments = tuple(path)
        current: Any = fields
        for index, segment in enumerate(segments):
            walked = segments[: index + 1]
            if isinstance(current, list):
                # Lists are not indexable by path; the walk stops at the list.
                break
            if not isinstance(current, Mapping):
                parent = format_path(segments[:index]) or "document root"
                self._sink.record(
                    Severity.WARNING,
                    f"Value at path {list(segments)} not found, {parent} is not a map",
                    kind=DiagnosticKind.PATH_NOT_FOUND,
                    path=segments,
                )
                return ABSENT
            if segment not in current:
                self._sink.record(
                    Severity.WARNING,
                    f"Value at path {list(segments)} not found",
                    kind=DiagnosticKind.PATH_NOT_FOUND,
                    path=walked,
                )
                return ABSENT
            try:
                current = self._step(current[segment], target_type, walked)
            except DecodeError as exc:
                self._sink.record(Severity.ERROR, exc.message, kind=exc.kind, path=walked)
                return ABSENT
            if current is None:
                return ABSENT
        return Decoded.of(current)

    def _step(self, raw: Any, target: TargetType, walked: tuple[str, ...]) -> Any:
        if not isinstance(raw, Mapping):
            raise DecodeError(
                DiagnosticKind.MALFORMED_WRAPPER,
                f"Tagged value expected, got {type(raw).__name__}",
            )
        tag = single_tag(raw)
        if tag is None:
            raise DecodeError(
                DiagnosticKind.MALFORMED_WRAPPER,
                f"Unexpected Firestore keywords length {sorted(raw)}",
            )
        if is_leaf_tag(tag):
            return convert(raw, target, sink=self._sink, path=walked)
        if not is_container_tag(tag):
            raise DecodeError(DiagnosticKind.MALFORMED_WRAPPER, f"Unknown Firestore keyword {tag}")

        unwrapped = unwrap_container(tag, raw[tag])
        if isinstance(unwrapped, list):
            return self._convert_items(unwrapped, target, walked)
        return unwrapped

    def _convert_items(self, items: list[Any], target: TargetType, walked: tuple[str, ...]) -> list[Any]:
        decoded: list[Any] = []
        for position, item in enumerate(items):
            value = convert(item, target, sink=self._sink, path=walked + (str(position),))
            if value is not None:
                decoded.append(value)
        return decoded
