from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import re


REFERENCE_SEPARATOR = "/"
DOCUMENTS_SEGMENT = "documents"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000
_RFC3339_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?"
    r"([Zz]|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ReferencePath:
    """Full resource name of a referenced document split into its segments."""

    segments: tuple[str, ...]

    @classmethod
    def from_string(cls, reference: str) -> "ReferencePath":
        return cls(segments=tuple(reference.split(REFERENCE_SEPARATOR)))

    @property
    def document_path(self) -> tuple[str, ...]:
        if DOCUMENTS_SEGMENT not in self.segments:
            return self.segments
        index = self.segments.index(DOCUMENTS_SEGMENT)
        return self.segments[index + 1 :]

    @property
    def document_id(self) -> str:
        return self.segments[-1] if self.segments else ""

    @property
    def collection_id(self) -> str | None:
        document_path = self.document_path
        if len(document_path) < 2:
            return None
        return document_path[-2]

    def __str__(self) -> str:
        return REFERENCE_SEPARATOR.join(self.segments)


@dataclass(frozen=True, order=True)
class Timestamp:
    """Point in time with nanosecond precision, as stored by Firestore.

    ``nanos`` is always non-negative; instants before the epoch carry a
    negative ``seconds`` value.
    """

    seconds: int
    nanos: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanos < _NANOS_PER_SECOND:
            raise ValueError(f"nanos must be in [0, {_NANOS_PER_SECOND}): {self.nanos}")

    @classmethod
    def from_rfc3339(cls, value: str) -> "Timestamp":
        match = _RFC3339_PATTERN.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid RFC3339 timestamp: {value}")
        year, month, day, hour, minute, second, fraction, offset = match.groups()
        parsed = datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            tzinfo=_parse_offset(offset),
        )
        delta = parsed - _EPOCH
        nanos = int(fraction.ljust(9, "0")) if fraction else 0
        return cls(seconds=delta.days * 86400 + delta.seconds, nanos=nanos)

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - _EPOCH
        return cls(seconds=delta.days * 86400 + delta.seconds, nanos=delta.microseconds * 1000)

    def to_datetime(self) -> datetime:
        # datetime keeps microseconds only; the remaining nanos are truncated.
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    def to_rfc3339(self) -> str:
        base = (_EPOCH + timedelta(seconds=self.seconds)).replace(tzinfo=None).isoformat()
        if self.nanos == 0:
            return f"{base}Z"
        fraction = f"{self.nanos:09d}".rstrip("0")
        return f"{base}.{fraction}Z"

    def __str__(self) -> str:
        return self.to_rfc3339()


def _parse_offset(offset: str) -> timezone:
    if offset in ("Z", "z"):
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    hours, minutes = offset[1:].split(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))
