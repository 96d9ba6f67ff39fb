"""Core data model — query configuration, raw records, run summary, severities."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from eventy.console import Color

PLACEHOLDER = "-"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_INSERTION = re.compile(r"\{(\d+)\}")


class Mode(Enum):
    LIST_LOGS = "list"
    RANGE_QUERY = "query"
    POINT_LOOKUP = "lookup"


@dataclass(frozen=True)
class Severity:
    name: str
    short: str
    color: Color


# One table keyed by raw level code, shared by every renderer.
SEVERITIES: dict[int, Severity] = {
    0: Severity("Information", "INF", Color.DEFAULT),  # LogAlways
    1: Severity("Critical", "CRI", Color.RED),
    2: Severity("Error", "ERR", Color.RED),
    3: Severity("Warning", "WAR", Color.YELLOW),
    4: Severity("Information", "INF", Color.DEFAULT),
    5: Severity("Verbose", "VER", Color.MAGENTA),
}
UNKNOWN_SEVERITY = Severity("Unknown", "UNK", Color.DEFAULT)

# CLI mnemonics -> raw level codes. Information covers both LogAlways and Informational.
LEVEL_MNEMONICS: dict[str, frozenset[int]] = {
    "crit": frozenset({1}),
    "critical": frozenset({1}),
    "err": frozenset({2}),
    "error": frozenset({2}),
    "warn": frozenset({3}),
    "warning": frozenset({3}),
    "info": frozenset({0, 4}),
    "information": frozenset({0, 4}),
    "verbose": frozenset({5}),
}


def severity_for(level: int | None) -> Severity:
    """Look up the display severity for a raw level code."""
    if level is None:
        return UNKNOWN_SEVERITY
    return SEVERITIES.get(level, UNKNOWN_SEVERITY)


@dataclass(frozen=True)
class QueryConfiguration:
    log_name: str | None = None
    record_id: int | None = None
    max_entries: int | None = None
    reverse_direction: bool = False
    query_from: datetime | None = None
    query_to: datetime | None = None
    log_levels: frozenset[int] = frozenset()
    search_terms: tuple[str, ...] = ()
    search_must_match_all: bool = False
    export_path: str | None = None

    def __post_init__(self):
        if self.max_entries is not None and self.max_entries <= 0:
            raise ValueError("max_entries must be positive when set")

    @property
    def mode(self) -> Mode:
        if self.record_id is not None:
            return Mode.POINT_LOOKUP
        if self.log_name is not None:
            return Mode.RANGE_QUERY
        return Mode.LIST_LOGS


@dataclass(frozen=True)
class RawRecord:
    """One event log entry as handed out by a log source cursor."""

    event_id: int
    activity_id: str | None = None
    process_id: int | None = None
    thread_id: int | None = None
    provider_id: str | None = None
    provider_name: str | None = None
    record_id: int | None = None
    level: int | None = None
    level_name: str | None = None
    time_created: datetime | None = None
    machine_name: str | None = None
    user_id: str | None = None
    log_name: str | None = None
    opcode_name: str | None = None
    task_name: str | None = None
    keywords: tuple[str, ...] | None = None
    message: str | None = None
    properties: tuple = ()

    def format_description(self) -> str | None:
        """Fill ``{N}`` placeholders in the message template with its insertion strings.

        Returns None when there is no template or a placeholder has no
        matching property. Anything else in braces is left as written.
        """
        if self.message is None:
            return None
        try:
            return _INSERTION.sub(lambda m: str(self.properties[int(m.group(1))]), self.message)
        except IndexError:
            return None

    def keyword_names(self) -> list[str] | None:
        if not self.keywords:
            return None
        return list(self.keywords)


@dataclass
class Summary:
    mode: Mode
    matched: int = 0
    logs_scanned: int = 0
    errors: int = 0
    read_errors: int = 0
    export_path: str | None = None


def pluralize(count: int, singular: str, plural: str) -> str:
    """Count followed by the singular or plural noun, e.g. '2 entries'."""
    return f"{count} {singular if count == 1 else plural}"


def display(value) -> str:
    """Render an optional value, substituting the placeholder when absent."""
    if value is None:
        return PLACEHOLDER
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    text = str(value)
    return text if text else PLACEHOLDER
