"""JSON export of log names or matched records."""

import json
import logging
import os
import tempfile

from eventy.errors import ExportError
from eventy.formatter import level_display_name
from eventy.models import RawRecord

logger = logging.getLogger(__name__)


def record_to_dict(record: RawRecord, owner_name: str | None = None) -> dict:
    """Full JSON-ready view of a record. Absent values become null."""
    return {
        "event_id": record.event_id,
        "activity_id": record.activity_id,
        "process_id": record.process_id,
        "record_id": record.record_id,
        "thread_id": record.thread_id,
        "provider_id": record.provider_id,
        "source": record.provider_name,
        "level": record.level,
        "level_name": level_display_name(record),
        "log_name": record.log_name,
        "machine_name": record.machine_name,
        "user_id": record.user_id,
        "user": owner_name,
        "opcode": record.opcode_name,
        "task": record.task_name,
        "keywords": record.keyword_names() or [],
        "logged": record.time_created.isoformat() if record.time_created else None,
        "description": record.format_description(),
    }


class MatchedSet:
    """Ordered accumulator of exported record snapshots for one run."""

    def __init__(self):
        self._items: list[dict] = []

    def add(self, record: RawRecord, owner_name: str | None = None) -> None:
        self._items.append(record_to_dict(record, owner_name))

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> list[dict]:
        return list(self._items)


def export_json(data, path: str | None) -> bool:
    """Serialize ``data`` to ``path``, replacing any existing file.

    Returns False when no path is given. The document is fully serialized
    before the target is touched, so a failure leaves it unchanged.
    Raises ExportError.
    """
    if not path:
        return False

    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ExportError(f"Could not serialize export data: {exc}") from exc

    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=directory, prefix=".eventy-", suffix=".tmp", delete=False
        ) as tmp:
            tmp_path = tmp.name
            tmp.write(payload)
            tmp.write("\n")
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise ExportError(f"Could not write {path}: {exc.strerror or exc}") from exc

    logger.debug("Exported %d item(s) to %s", len(data), path)
    return True
