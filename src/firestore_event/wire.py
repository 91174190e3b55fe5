from __future__ import annotations

from typing import Any, Iterable, Mapping


NULL_VALUE = "nullValue"
BOOLEAN_VALUE = "booleanValue"
INTEGER_VALUE = "integerValue"
DOUBLE_VALUE = "doubleValue"
TIMESTAMP_VALUE = "timestampValue"
STRING_VALUE = "stringValue"
BYTES_VALUE = "bytesValue"
REFERENCE_VALUE = "referenceValue"
GEO_POINT_VALUE = "geoPointValue"
MAP_VALUE = "mapValue"
ARRAY_VALUE = "arrayValue"

LEAF_TAGS = frozenset(
    (
        NULL_VALUE,
        BOOLEAN_VALUE,
        INTEGER_VALUE,
        DOUBLE_VALUE,
        TIMESTAMP_VALUE,
        STRING_VALUE,
        BYTES_VALUE,
        REFERENCE_VALUE,
        GEO_POINT_VALUE,
    )
)
CONTAINER_TAGS = frozenset((MAP_VALUE, ARRAY_VALUE))
ALL_TAGS = LEAF_TAGS | CONTAINER_TAGS

PATH_SEPARATOR = "."


def single_tag(wrapper: Mapping[str, Any]) -> str | None:
    """Return the only key of a tagged value, or None when it has zero or several."""

    if len(wrapper) != 1:
        return None
    return next(iter(wrapper))


def is_leaf_tag(tag: str | None) -> bool:
    return tag in LEAF_TAGS


def is_container_tag(tag: str | None) -> bool:
    return tag in CONTAINER_TAGS


def format_path(path: Iterable[str]) -> str:
    return PATH_SEPARATOR.join(path)


def split_path(dotted: str) -> tuple[str, ...]:
    stripped = dotted.strip()
    if not stripped:
        return ()
    segments = tuple(segment.strip() for segment in stripped.split(PATH_SEPARATOR))
    if any(not segment for segment in segments):
        raise ValueError(f"Invalid field path: {dotted}")
    return segments
