from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Protocol

from firestore_event.wire import format_path


DEFAULT_DIAGNOSTICS_LOGGER = "firestore_event.diagnostics"


class Severity(str, Enum):
    WARNING = "WARNING"
    ERROR = "ERROR"


class DiagnosticKind(str, Enum):
    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    MALFORMED_WRAPPER = "MALFORMED_WRAPPER"
    UNPARSEABLE_LEAF = "UNPARSEABLE_LEAF"
    UNSUPPORTED_TARGET = "UNSUPPORTED_TARGET"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    kind: DiagnosticKind
    message: str
    path: tuple[str, ...] = ()


class DiagnosticsSink(Protocol):
    def record(
        self,
        severity: Severity,
        message: str,
        *,
        kind: DiagnosticKind,
        path: tuple[str, ...] = (),
    ) -> None:
        """Record a degradation that was recovered locally."""


_LOG_LEVELS = {
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingDiagnosticsSink:
    """Forward diagnostics to a stdlib logger."""

    def __init__(self, logger_name: str = DEFAULT_DIAGNOSTICS_LOGGER) -> None:
        self._logger = logging.getLogger(logger_name)

    def record(
        self,
        severity: Severity,
        message: str,
        *,
        kind: DiagnosticKind,
        path: tuple[str, ...] = (),
    ) -> None:
        self._logger.log(_LOG_LEVELS[severity], "%s: %s path=%s", kind.value, message, format_path(path) or "-")


@dataclass
class RecordingDiagnosticsSink:
    """Keep diagnostics in memory, optionally forwarding them to another sink."""

    forward_to: DiagnosticsSink | None = None
    records: list[Diagnostic] = field(default_factory=list)

    def record(
        self,
        severity: Severity,
        message: str,
        *,
        kind: DiagnosticKind,
        path: tuple[str, ...] = (),
    ) -> None:
        self.records.append(Diagnostic(severity=severity, kind=kind, message=message, path=tuple(path)))
        if self.forward_to is not None:
            self.forward_to.record(severity, message, kind=kind, path=path)

    def kinds(self) -> list[DiagnosticKind]:
        return [diagnostic.kind for diagnostic in self.records]

    def clear(self) -> None:
        self.records.clear()
