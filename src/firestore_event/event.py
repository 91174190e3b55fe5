from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from firestore_event.classifier import EventKind, classify, is_created, is_deleted, is_field_changed, is_updated
from firestore_event.diagnostics import DiagnosticsSink
from firestore_event.navigator import FieldNavigator
from firestore_event.reader import SnapshotReader
from firestore_event.target import TargetSpec
from firestore_event.values import Timestamp


class EventPayloadError(ValueError):
    """Raised when a payload does not have the shape of a document change event."""


def _parse_time(value: Any) -> Any:
    if isinstance(value, str):
        return Timestamp.from_rfc3339(value).to_datetime()
    return value


class DocumentSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str | None = None
    fields: dict[str, Any] | None = None
    create_time: datetime | None = Field(default=None, alias="createTime")
    update_time: datetime | None = Field(default=None, alias="updateTime")

    @field_validator("create_time", "update_time", mode="before")
    @classmethod
    def _parse_rfc3339(cls, value: Any) -> Any:
        return _parse_time(value)

    @property
    def has_fields(self) -> bool:
        return bool(self.fields)

    @property
    def document_id(self) -> str | None:
        if not self.name:
            return None
        return self.name.rsplit("/", 1)[-1]


class FieldMask(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    field_paths: list[str] | None = Field(default=None, alias="fieldPaths")


class FirestoreEvent(BaseModel):
    """Document change event: current snapshot, previous snapshot and update mask.

    Build it with :meth:`from_payload` or :meth:`from_json`.  The snapshots are
    read through :attr:`current` and :attr:`previous`; every lookup is
    fault-tolerant and reports problems to the diagnostics sink given at
    construction (stdlib logging by default).

    ``previous`` only carries data for update and delete events.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value: DocumentSnapshot = Field(default_factory=DocumentSnapshot)
    old_value: DocumentSnapshot = Field(default_factory=DocumentSnapshot, alias="oldValue")
    update_mask: FieldMask = Field(default_factory=FieldMask, alias="updateMask")

    _navigator: FieldNavigator = PrivateAttr(default_factory=FieldNavigator)

    @field_validator("value", "old_value", "update_mask", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, sink: DiagnosticsSink | None = None) -> "FirestoreEvent":
        try:
            event = cls.model_validate(payload)
        except ValidationError as exc:
            raise EventPayloadError(f"Invalid Firestore event payload: {exc}") from exc
        event._navigator = FieldNavigator(sink)
        return event

    @classmethod
    def from_json(cls, raw: str | bytes, *, sink: DiagnosticsSink | None = None) -> "FirestoreEvent":
        try:
            event = cls.model_validate_json(raw)
        except ValidationError as exc:
            raise EventPayloadError(f"Invalid Firestore event payload: {exc}") from exc
        event._navigator = FieldNavigator(sink)
        return event

    @property
    def sink(self) -> DiagnosticsSink:
        return self._navigator.sink

    @property
    def current(self) -> SnapshotReader:
        return SnapshotReader(self.value, self._navigator)

    @property
    def previous(self) -> SnapshotReader:
        return SnapshotReader(self.old_value, self._navigator)

    @property
    def create_time(self) -> datetime | None:
        return self.value.create_time

    @property
    def update_time(self) -> datetime | None:
        return self.value.update_time

    @property
    def old_create_time(self) -> datetime | None:
        return self.old_value.create_time

    @property
    def old_update_time(self) -> datetime | None:
        return self.old_value.update_time

    @property
    def changed_field_paths(self) -> tuple[str, ...]:
        return tuple(self.update_mask.field_paths or ())

    def is_created(self) -> bool:
        return is_created(self.old_value.fields, self.update_mask.field_paths)

    def is_updated(self) -> bool:
        return is_updated(self.value.fields, self.old_value.fields)

    def is_deleted(self) -> bool:
        return is_deleted(self.value.fields, self.old_value.fields)

    def kind(self) -> EventKind:
        return classify(self.value.fields, self.old_value.fields, self.update_mask.field_paths)

    def is_field_changed(self, path: str | Sequence[str]) -> bool:
        return is_field_changed(self.update_mask.field_paths, path)

    def find_value(self, target: TargetSpec, *path: str) -> Any | None:
        return self.current.find_value(target, *path)

    def find_value_in(self, fields: Mapping[str, Any] | None, target: TargetSpec, *path: str) -> Any | None:
        return self.current.find_value_in(fields, target, *path)

    def find_list(self, target: TargetSpec, *path: str) -> list[Any]:
        return self.current.find_list(target, *path)

    def find_list_of_maps(self, *path: str) -> list[dict[str, Any]]:
        return self.current.find_list_of_maps(*path)

    def find_map(self, *path: str) -> dict[str, Any]:
        return self.current.find_map(*path)
