import io
from datetime import datetime

import pytest

from eventy.console import Console
from eventy.errors import AccessError, NotFoundError, ReadError, ResolutionError
from eventy.models import RawRecord
from eventy.source import Cursor, LogSource


def make_record(record_id=1, level=4, ts="2025-05-15 14:30:00", **kwargs) -> RawRecord:
    """Helper to create a RawRecord for testing."""
    kwargs.setdefault("event_id", 1000)
    kwargs.setdefault("provider_name", "TestProvider")
    return RawRecord(
        record_id=record_id,
        level=level,
        time_created=datetime.strptime(ts, "%Y-%m-%d %H:%M:%S") if ts else None,
        **kwargs,
    )


class FakeCursor(Cursor):
    def __init__(self, log_name, records):
        super().__init__(log_name)
        self.records = records


class FakeLogSource(LogSource):
    """In-memory log source. Records are stored oldest first."""

    def __init__(self, logs=None, accounts=None):
        self.logs = logs or {}
        self.accounts = accounts or {}
        self.unopenable = set()
        self.bad_positions = {}     # log name -> positions (read order) that fail
        self.stuck = set()          # logs whose reads fail without advancing
        self.list_error = None
        self.opened = []
        self.closed = []

    def list_accessible_logs(self):
        if self.list_error:
            raise AccessError(self.list_error)
        return [name for name, records in self.logs.items() if records]

    def open_cursor(self, log_name, newest_first):
        if log_name not in self.logs:
            raise NotFoundError(f"Log {log_name} not found")
        if log_name in self.unopenable:
            raise AccessError(f"Access denied to {log_name}")
        records = list(self.logs[log_name])
        if newest_first:
            records.reverse()
        cursor = FakeCursor(log_name, records)
        self.opened.append(cursor)
        return cursor

    def read_next(self, cursor):
        if cursor.log_name in self.stuck:
            raise ReadError("stuck")
        if cursor.position >= len(cursor.records):
            return None
        position = cursor.position
        cursor.position += 1
        if position in self.bad_positions.get(cursor.log_name, ()):
            raise ReadError(f"bad record at {position}")
        return cursor.records[position]

    def resolve_owner_name(self, owner_id):
        try:
            return self.accounts[owner_id]
        except KeyError:
            raise ResolutionError(owner_id) from None

    def close_cursor(self, cursor):
        if not cursor.closed:
            cursor.closed = True
            self.closed.append(cursor)


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def err():
    return io.StringIO()


@pytest.fixture
def console(out, err):
    return Console(out=out, err=err, color="never")


@pytest.fixture
def source():
    return FakeLogSource(
        logs={
            "Application": [
                make_record(1, level=4, ts="2025-05-14 08:00:00", message="Service started"),
                make_record(2, level=2, ts="2025-05-14 09:00:00", message="Disk foo failed", provider_name="Disk"),
                make_record(3, level=3, ts="2025-05-15 10:00:00", message="foo and bar", user_id="S-1"),
                make_record(4, level=0, ts="2025-05-16 11:00:00", message="bar only"),
            ],
            "System": [
                make_record(10, level=1, ts="2025-05-15 03:00:00", message="Rebooted"),
                make_record(123456, level=1, ts="2025-05-15 03:20:00", message="Kernel power"),
            ],
            "Empty": [],
        },
        accounts={"S-1": "WS\\alice"},
    )
