"""Filter predicates for raw records — time window, level set, text search."""

from datetime import datetime
from typing import Callable, Iterable

from eventy.models import QueryConfiguration, RawRecord

OwnerLookup = Callable[[str], "str | None"]


def filter_by_time(record: RawRecord, query_from: datetime | None,
                   query_to: datetime | None) -> bool:
    """True if the record falls inside the inclusive window.

    A record without a timestamp is never rejected.
    """
    ts = record.time_created
    if ts is None:
        return True
    if query_from is not None and ts < query_from:
        return False
    if query_to is not None and ts > query_to:
        return False
    return True


def filter_by_level(record: RawRecord, levels: Iterable[int]) -> bool:
    """True if no levels are selected, the record has no level, or it matches one."""
    levels = frozenset(levels)
    if not levels or record.level is None:
        return True
    return record.level in levels


def search_pool(record: RawRecord, resolve_owner: OwnerLookup | None = None) -> list[str]:
    """Collect every text value a search term may match against."""
    values = [
        record.event_id,
        record.activity_id,
        record.process_id,
        record.record_id,
        record.thread_id,
        record.provider_id,
        record.provider_name,
        record.machine_name,
        record.user_id,
        record.format_description(),
    ]
    if resolve_owner is not None and record.user_id is not None:
        values.append(resolve_owner(record.user_id))
    values.append(record.opcode_name)
    values.append(record.task_name)
    values.extend(record.keyword_names() or [])

    return [str(v).lower() for v in values if v is not None]


def count_matched_terms(pool: list[str], terms: Iterable[str]) -> int:
    """Number of terms with at least one case-insensitive substring hit in the pool."""
    matched = 0
    for term in terms:
        needle = term.lower()
        if any(needle in value for value in pool):
            matched += 1
    return matched


def filter_by_search(record: RawRecord, terms: tuple[str, ...], match_all: bool,
                     resolve_owner: OwnerLookup | None = None) -> bool:
    """True if the record satisfies the search terms (AND when match_all, else OR)."""
    if not terms:
        return True
    matched = count_matched_terms(search_pool(record, resolve_owner), terms)
    if match_all:
        return matched == len(terms)
    return matched > 0


def build_filter_chain(config: QueryConfiguration,
                       resolve_owner: OwnerLookup | None = None) -> Callable[[RawRecord], bool]:
    """Combine the active filters from the configuration into a single callable.

    Returns a function that ANDs all active predicates together.
    """
    predicates = []

    if config.query_from is not None or config.query_to is not None:
        predicates.append(
            lambda r, f=config.query_from, t=config.query_to: filter_by_time(r, f, t)
        )

    if config.log_levels:
        predicates.append(lambda r, lv=config.log_levels: filter_by_level(r, lv))

    if config.search_terms:
        predicates.append(
            lambda r, t=config.search_terms, a=config.search_must_match_all:
                filter_by_search(r, t, a, resolve_owner)
        )

    if not predicates:
        return lambda record: True

    def combined(record: RawRecord) -> bool:
        return all(p(record) for p in predicates)

    return combined
