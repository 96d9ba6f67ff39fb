"""Record formatters — aligned table rows and detailed key/value blocks."""

from dataclasses import dataclass

from eventy.console import NEWLINE, Color, ResetColor, SetColor, Text, Token
from eventy.models import (
    PLACEHOLDER,
    SEVERITIES,
    RawRecord,
    Severity,
    display,
    severity_for,
)

LEVEL_WIDTH = max(len(s.name) for s in SEVERITIES.values())
CREATED_WIDTH = 21


@dataclass(frozen=True)
class Row:
    """The rendered strings of one table row, detached from its record."""

    severity: Severity
    record_id: str
    created: str
    source: str


def row_for(record: RawRecord) -> Row:
    """Capture the displayed strings of one record as a table row."""
    return Row(
        severity=severity_for(record.level),
        record_id=display(record.record_id),
        created=display(record.time_created),
        source=display(record.provider_name),
    )


def id_column_width(rows: list[Row]) -> int:
    """Width of the record id column: longest id plus its '#' prefix."""
    if not rows:
        return 0
    return max(len(r.record_id) for r in rows) + 1


def format_row(row: Row, id_width: int) -> list[Token]:
    """Render one row as severity, id, created and source columns."""
    return [
        SetColor(row.severity.color),
        Text(row.severity.name.ljust(LEVEL_WIDTH) + " "),
        SetColor(Color.BLUE),
        Text(f"#{row.record_id}".ljust(id_width) + " "),
        SetColor(Color.GREEN),
        Text(row.created.ljust(CREATED_WIDTH)),
        ResetColor(),
        Text(row.source),
        NEWLINE,
    ]


def format_rows(rows: list[Row]) -> list[Token]:
    """Render a batch of rows sharing one set of column widths."""
    width = id_column_width(rows)
    tokens = []
    for row in rows:
        tokens.extend(format_row(row, width))
    return tokens


def level_display_name(record: RawRecord) -> str | None:
    if record.level_name:
        return record.level_name
    if record.level is None:
        return None
    return severity_for(record.level).name


def detail_fields(record: RawRecord, owner_name: str | None) -> dict[str, str]:
    """Ordered key/value pairs shown in the detail view."""
    keywords = record.keyword_names()
    return {
        "Event Id": display(record.event_id),
        "Activity Id": display(record.activity_id),
        "Process Id": display(record.process_id),
        "Record Id": display(record.record_id),
        "Thread Id": display(record.thread_id),
        "Provider Id": display(record.provider_id),
        "Source": display(record.provider_name),
        "Level": display(level_display_name(record)),
        "Log Name": display(record.log_name),
        "Machine Name": display(record.machine_name),
        "User": display(owner_name),
        "OpCode": display(record.opcode_name),
        "Task": display(record.task_name),
        "Keywords": ", ".join(keywords) if keywords else PLACEHOLDER,
        "Logged": display(record.time_created),
    }


def format_detail(record: RawRecord, owner_name: str | None) -> list[Token]:
    """Render the full detail block followed by the formatted description."""
    fields = detail_fields(record, owner_name)
    longest = max(len(key) for key in fields)

    tokens = []
    for key, value in fields.items():
        tokens.extend([
            Text(key + ": " + " " * (longest - len(key))),
            SetColor(Color.BLUE),
            Text(value),
            ResetColor(),
            NEWLINE,
        ])
    tokens.extend([NEWLINE, Text(display(record.format_description())), NEWLINE])
    return tokens
