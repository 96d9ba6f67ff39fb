"""Log source interface plus a directory-of-NDJSON implementation."""

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterator

from eventy.errors import AccessError, NotFoundError, ReadError, ResolutionError
from eventy.models import RawRecord

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".ndjson"

_INT_FIELDS = ("process_id", "thread_id", "record_id", "level")
_STR_FIELDS = (
    "activity_id", "provider_id", "provider_name", "level_name",
    "machine_name", "user_id", "opcode_name", "task_name", "message",
)


class Cursor:
    """Stateful handle over one log. Only the source that opened it reads it."""

    def __init__(self, log_name: str):
        self.log_name = log_name
        self.closed = False
        self.position = 0


class LogSource(ABC):
    """Narrow interface the engine consumes to reach the host's event logs."""

    @abstractmethod
    def list_accessible_logs(self) -> list[str]:
        """Names of logs whose entries the caller can read. Raises AccessError."""

    @abstractmethod
    def open_cursor(self, log_name: str, newest_first: bool) -> Cursor:
        """Raises NotFoundError or AccessError."""

    @abstractmethod
    def read_next(self, cursor: Cursor) -> RawRecord | None:
        """Next record, or None once exhausted. Raises ReadError."""

    @abstractmethod
    def resolve_owner_name(self, owner_id: str) -> str:
        """Raises ResolutionError."""

    @abstractmethod
    def close_cursor(self, cursor: Cursor) -> None:
        """Release the cursor. Safe to call more than once."""


def _optional_int(data: dict, key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ReadError(f"Field '{key}' must be an integer, got {value!r}")
    return value


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ReadError(f"Field '{key}' must be a string, got {value!r}")
    return value


def _parse_timestamp(value) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ReadError(f"Field 'time_created' must be a string, got {value!r}")
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ReadError(f"Invalid time_created {value!r}") from exc
    if ts.tzinfo is not None:
        # Compare everything in local wall-clock time.
        ts = ts.astimezone().replace(tzinfo=None)
    return ts


def record_from_dict(data: dict, log_name: str) -> RawRecord:
    """Build a RawRecord from one decoded NDJSON object. Raises ReadError."""
    if not isinstance(data, dict):
        raise ReadError(f"Expected a JSON object, got {type(data).__name__}")

    event_id = data.get("event_id")
    if isinstance(event_id, bool) or not isinstance(event_id, int):
        raise ReadError(f"Field 'event_id' is required and must be an integer, got {event_id!r}")

    keywords = data.get("keywords")
    if keywords is not None:
        if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
            raise ReadError("Field 'keywords' must be a list of strings")
        keywords = tuple(keywords)

    properties = data.get("properties") or []
    if not isinstance(properties, list):
        raise ReadError("Field 'properties' must be a list")

    ints = {key: _optional_int(data, key) for key in _INT_FIELDS}
    strs = {key: _optional_str(data, key) for key in _STR_FIELDS}

    return RawRecord(
        event_id=event_id,
        time_created=_parse_timestamp(data.get("time_created")),
        log_name=log_name,
        keywords=keywords,
        properties=tuple(properties),
        **ints,
        **strs,
    )


class NdjsonCursor(Cursor):
    def __init__(self, log_name: str, lines: Iterator[bytes], handle=None):
        super().__init__(log_name)
        self._lines = lines
        self._handle = handle

    def next_line(self) -> bytes | None:
        """Advance one line. Returns None at the end."""
        line = next(self._lines, None)
        if line is not None:
            self.position += 1
        return line

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        self._lines = iter(())
        self.closed = True


class NdjsonLogSource(LogSource):
    """Each ``<LogName>.ndjson`` file in ``log_dir`` is one log, oldest line first."""

    def __init__(self, log_dir: str, accounts: dict[str, str] | None = None):
        self.log_dir = log_dir
        self.accounts = dict(accounts or {})

    def _candidates(self) -> dict[str, str]:
        """Map log name -> file path for every NDJSON file in the directory."""
        try:
            names = sorted(os.listdir(self.log_dir))
        except OSError as exc:
            raise AccessError(f"Cannot enumerate logs in {self.log_dir}: {exc.strerror or exc}") from exc
        return {
            name[: -len(LOG_SUFFIX)]: os.path.join(self.log_dir, name)
            for name in names
            if name.endswith(LOG_SUFFIX) and os.path.isfile(os.path.join(self.log_dir, name))
        }

    @staticmethod
    def _has_entries(path: str) -> bool:
        try:
            with open(path, "rb") as f:
                return any(line.strip() for line in f)
        except OSError as exc:
            logger.debug("Skipping unreadable log %s: %s", path, exc)
            return False

    def list_accessible_logs(self) -> list[str]:
        return [name for name, path in self._candidates().items() if self._has_entries(path)]

    def _resolve_path(self, log_name: str) -> tuple[str, str]:
        candidates = self._candidates()
        if log_name in candidates:
            return log_name, candidates[log_name]
        for name, path in candidates.items():
            if name.lower() == log_name.lower():
                return name, path
        raise NotFoundError(f"Log {log_name} not found")

    def open_cursor(self, log_name: str, newest_first: bool) -> NdjsonCursor:
        name, path = self._resolve_path(log_name)
        try:
            handle = open(path, "rb")
        except OSError as exc:
            raise AccessError(f"Cannot open log {name}: {exc.strerror or exc}") from exc

        # Lines stay raw bytes; each one is decoded on its own in read_next.
        if newest_first:
            try:
                lines = handle.readlines()
            except OSError as exc:
                raise AccessError(f"Cannot read log {name}: {exc.strerror or exc}") from exc
            finally:
                handle.close()
            logger.debug("Opened %s newest-first (%d lines)", name, len(lines))
            return NdjsonCursor(name, reversed(lines))

        logger.debug("Opened %s oldest-first", name)
        return NdjsonCursor(name, iter(handle), handle=handle)

    def read_next(self, cursor: NdjsonCursor) -> RawRecord | None:
        while True:
            try:
                raw = cursor.next_line()
            except OSError as exc:
                raise ReadError(f"{cursor.log_name}: read failed after line {cursor.position}: {exc}") from exc
            if raw is None:
                return None
            if not raw.strip():
                continue
            # The line is consumed before decoding, so a bad record never stalls the cursor.
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ReadError(f"{cursor.log_name}: line {cursor.position} is not valid UTF-8") from exc
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ReadError(f"{cursor.log_name}: line {cursor.position} is not valid JSON") from exc
            try:
                return record_from_dict(data, cursor.log_name)
            except ReadError as exc:
                raise ReadError(f"{cursor.log_name}: line {cursor.position}: {exc}") from exc

    def resolve_owner_name(self, owner_id: str) -> str:
        try:
            return self.accounts[owner_id]
        except KeyError:
            raise ResolutionError(f"Unknown owner id {owner_id}") from None

    def close_cursor(self, cursor: NdjsonCursor) -> None:
        if not cursor.closed:
            cursor.close()
