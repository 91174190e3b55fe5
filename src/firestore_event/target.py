from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Union

from firestore_event.values import GeoPoint, ReferencePath, Timestamp


class TargetKind(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    INT32 = "int32"
    INT64 = "int64"
    DOUBLE = "double"
    REFERENCE = "reference"
    GEO_POINT = "geo_point"
    TIMESTAMP = "timestamp"
    DATETIME = "datetime"
    BLOB = "blob"
    MAP = "map"
    ENUM = "enum"
    UNSUPPORTED = "unsupported"


_KINDS_BY_PYTHON_TYPE: dict[type, TargetKind] = {
    str: TargetKind.STRING,
    bool: TargetKind.BOOLEAN,
    int: TargetKind.INT64,
    float: TargetKind.DOUBLE,
    bytes: TargetKind.BLOB,
    dict: TargetKind.MAP,
    datetime: TargetKind.DATETIME,
    Timestamp: TargetKind.TIMESTAMP,
    GeoPoint: TargetKind.GEO_POINT,
    ReferencePath: TargetKind.REFERENCE,
}

_PYTHON_TYPES_BY_KIND: dict[TargetKind, type] = {
    TargetKind.STRING: str,
    TargetKind.BOOLEAN: bool,
    TargetKind.DOUBLE: float,
    TargetKind.BLOB: bytes,
    TargetKind.MAP: Mapping,
    TargetKind.DATETIME: datetime,
    TargetKind.TIMESTAMP: Timestamp,
    TargetKind.GEO_POINT: GeoPoint,
    TargetKind.REFERENCE: ReferencePath,
}


@dataclass(frozen=True)
class TargetType:
    """Native type a lookup asks for."""

    kind: TargetKind
    enum_class: type[Enum] | None = None

    @classmethod
    def of(cls, spec: "TargetSpec") -> "TargetType":
        """Normalize a descriptor, a kind or a Python type; unknown types map to UNSUPPORTED."""

        if isinstance(spec, TargetType):
            return spec
        if isinstance(spec, TargetKind):
            return cls(kind=spec)
        if isinstance(spec, type):
            if issubclass(spec, Enum):
                return cls(kind=TargetKind.ENUM, enum_class=spec)
            kind = _KINDS_BY_PYTHON_TYPE.get(spec)
            if kind is not None:
                return cls(kind=kind)
        return cls(kind=TargetKind.UNSUPPORTED)

    @classmethod
    def enum(cls, enum_class: type[Enum]) -> "TargetType":
        return cls(kind=TargetKind.ENUM, enum_class=enum_class)

    @property
    def name(self) -> str:
        if self.kind is TargetKind.ENUM and self.enum_class is not None:
            return self.enum_class.__name__
        return self.kind.value

    def accepts(self, value: Any) -> bool:
        if self.kind in (TargetKind.INT32, TargetKind.INT64):
            return isinstance(value, int) and not isinstance(value, bool)
        if self.kind is TargetKind.ENUM:
            return self.enum_class is not None and isinstance(value, self.enum_class)
        python_type = _PYTHON_TYPES_BY_KIND.get(self.kind)
        return python_type is not None and isinstance(value, python_type)


TargetSpec = Union[TargetType, TargetKind, type]

STRING = TargetType(TargetKind.STRING)
BOOLEAN = TargetType(TargetKind.BOOLEAN)
INT32 = TargetType(TargetKind.INT32)
INT64 = TargetType(TargetKind.INT64)
DOUBLE = TargetType(TargetKind.DOUBLE)
REFERENCE = TargetType(TargetKind.REFERENCE)
GEO_POINT = TargetType(TargetKind.GEO_POINT)
TIMESTAMP = TargetType(TargetKind.TIMESTAMP)
DATETIME = TargetType(TargetKind.DATETIME)
BLOB = TargetType(TargetKind.BLOB)
MAP = TargetType(TargetKind.MAP)
