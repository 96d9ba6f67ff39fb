"""Query engine — picks a mode, drives the log source, filters, renders, exports."""

import logging
from typing import Iterator

from eventy.console import NEWLINE, Console
from eventy.errors import AccessError, ExportError, ReadError, ResolutionError
from eventy.exporter import MatchedSet, export_json
from eventy.filters import build_filter_chain
from eventy.formatter import format_detail, format_rows, row_for
from eventy.models import Mode, QueryConfiguration, RawRecord, Summary, pluralize
from eventy.source import Cursor, LogSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_READ_ERRORS = 100


class QueryEngine:
    """Runs one query against one log source.

    The engine never mutates the configuration it is given; all per-run
    state (owner-name cache, matched set, counters) lives in the run.
    """

    def __init__(self, source: LogSource, console: Console,
                 max_read_errors: int = DEFAULT_MAX_READ_ERRORS):
        self.source = source
        self.console = console
        self.max_read_errors = max(1, max_read_errors)
        self._owner_cache: dict[str, str | None] = {}

    def run(self, config: QueryConfiguration) -> Summary:
        self._owner_cache = {}
        summary = Summary(mode=config.mode)
        logger.debug("Running %s with %s", summary.mode.value, config)

        if summary.mode is Mode.LIST_LOGS:
            self._list_logs(config, summary)
        elif summary.mode is Mode.RANGE_QUERY:
            self._range_query(config, summary)
        else:
            self._point_lookup(config, summary)
        return summary

    # -- helpers -----------------------------------------------------------

    def resolve_owner(self, owner_id: str | None) -> str | None:
        """Owner display name, or None when absent or untranslatable."""
        if owner_id is None:
            return None
        if owner_id not in self._owner_cache:
            try:
                self._owner_cache[owner_id] = self.source.resolve_owner_name(owner_id)
            except ResolutionError as exc:
                logger.debug("Owner lookup failed: %s", exc)
                self._owner_cache[owner_id] = None
        return self._owner_cache[owner_id]

    def _records(self, cursor: Cursor, summary: Summary) -> Iterator[RawRecord]:
        """Yield records from a cursor, skipping unreadable ones.

        Gives up on the cursor after ``max_read_errors`` consecutive failures.
        """
        consecutive = 0
        while True:
            try:
                record = self.source.read_next(cursor)
            except ReadError as exc:
                summary.read_errors += 1
                consecutive += 1
                self.console.warning(f"Skipping unreadable record: {exc}")
                if consecutive >= self.max_read_errors:
                    summary.errors += 1
                    self.console.error(
                        f"Giving up on {cursor.log_name} after "
                        f"{pluralize(consecutive, 'consecutive read failure', 'consecutive read failures')}"
                    )
                    return
                continue
            if record is None:
                return
            consecutive = 0
            yield record

    def _report_error(self, summary: Summary, message: str) -> None:
        summary.errors += 1
        self.console.error(message)

    def _export(self, data: list, config: QueryConfiguration, summary: Summary) -> None:
        if not config.export_path:
            return
        try:
            export_json(data, config.export_path)
        except ExportError as exc:
            self._report_error(summary, str(exc))
            return
        summary.export_path = config.export_path
        self.console.info(
            f"Exported {pluralize(len(data), 'item', 'items')} to {config.export_path}"
        )

    # -- modes -------------------------------------------------------------

    def _list_logs(self, config: QueryConfiguration, summary: Summary) -> None:
        try:
            names = sorted(self.source.list_accessible_logs(), key=str.lower)
        except AccessError as exc:
            self._report_error(summary, str(exc))
            return

        for name in names:
            self.console.line(name)
        summary.matched = len(names)
        summary.logs_scanned = len(names)
        self.console.info(f"Found {pluralize(len(names), 'log', 'logs')}")
        self._export(names, config, summary)

    def _range_query(self, config: QueryConfiguration, summary: Summary) -> None:
        # Default order is newest first; "reverse" reads oldest first.
        newest_first = not config.reverse_direction
        try:
            cursor = self.source.open_cursor(config.log_name, newest_first)
        except AccessError as exc:
            self._report_error(summary, str(exc))
            return

        keep = build_filter_chain(config, self.resolve_owner)
        matched = MatchedSet() if config.export_path else None
        rows = []
        try:
            for record in self._records(cursor, summary):
                if not keep(record):
                    continue
                rows.append(row_for(record))
                if matched is not None:
                    matched.add(record, self.resolve_owner(record.user_id))
                if config.max_entries is not None and len(rows) >= config.max_entries:
                    break
        finally:
            self.source.close_cursor(cursor)

        summary.logs_scanned = 1
        summary.matched = len(rows)
        self.console.write(format_rows(rows))

        if rows:
            self.console.info(
                f"Found {pluralize(len(rows), 'matching entry', 'matching entries')} "
                f"in {cursor.log_name}"
            )
        else:
            self.console.info(f"No matching entries found in {cursor.log_name}")

        if matched is not None:
            self._export(matched.to_list(), config, summary)

    def _find_record(self, log_name: str, config: QueryConfiguration,
                     summary: Summary) -> RawRecord | None:
        """Scan one log for the configured record id. Raises AccessError."""
        cursor = self.source.open_cursor(log_name, not config.reverse_direction)
        try:
            summary.logs_scanned += 1
            for record in self._records(cursor, summary):
                if record.record_id == config.record_id:
                    return record
            return None
        finally:
            self.source.close_cursor(cursor)

    def _point_lookup(self, config: QueryConfiguration, summary: Summary) -> None:
        if config.log_name is not None:
            names = [config.log_name]
        else:
            try:
                names = sorted(self.source.list_accessible_logs(), key=str.lower)
            except AccessError as exc:
                self._report_error(summary, str(exc))
                return

        matched = MatchedSet() if config.export_path else None
        for name in names:
            try:
                record = self._find_record(name, config, summary)
            except AccessError as exc:
                if config.log_name is not None:
                    self._report_error(summary, str(exc))
                    return
                self.console.warning(f"Skipping {name}: {exc}")
                continue
            if record is None:
                continue

            owner_name = self.resolve_owner(record.user_id)
            if summary.matched:
                self.console.write([NEWLINE])
            self.console.write(format_detail(record, owner_name))
            summary.matched += 1
            if matched is not None:
                matched.add(record, owner_name)

        if config.log_name is not None:
            if not summary.matched:
                self._report_error(
                    summary, f"Record {config.record_id} in {config.log_name} not found"
                )
        elif summary.matched != 1:
            self.console.info(
                f"Found {pluralize(summary.matched, 'record', 'records')} with id "
                f"{config.record_id} across {pluralize(len(names), 'log', 'logs')}"
            )

        if matched is not None and len(matched):
            self._export(matched.to_list(), config, summary)
