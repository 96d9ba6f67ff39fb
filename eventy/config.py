"""Configuration loading from YAML, env vars, and parsed CLI arguments."""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, time

import yaml

from eventy.errors import ConfigurationError
from eventy.models import LEVEL_MNEMONICS, SEVERITIES, QueryConfiguration

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
COLOR_MODES = ("auto", "always", "never")


@dataclass(frozen=True)
class Settings:
    log_dir: str = "./logs"
    default_max_entries: int = 10
    color: str = "auto"
    max_read_errors: int = 100
    accounts: dict[str, str] = field(default_factory=dict)


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or no file."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc.strerror or exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _to_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def load_settings(yaml_data: dict, env=None, log_dir: str | None = None,
                  color: str | None = None) -> Settings:
    """Build Settings: defaults < YAML < env vars < CLI overrides."""
    env = os.environ if env is None else env

    accounts = yaml_data.get("accounts") or {}
    if not isinstance(accounts, dict):
        raise ConfigurationError("accounts must be a mapping of owner id to name")

    resolved_color = (
        color
        or env.get("EVENTY_COLOR")
        or yaml_data.get("color", Settings.color)
    )
    resolved_color = str(resolved_color).lower()
    if resolved_color not in COLOR_MODES:
        raise ConfigurationError(
            f"color must be one of {', '.join(COLOR_MODES)}, got {resolved_color!r}"
        )

    return Settings(
        log_dir=log_dir or env.get("EVENTY_LOG_DIR") or yaml_data.get("log_dir", Settings.log_dir),
        default_max_entries=_to_int(
            env.get("EVENTY_MAX_ENTRIES", yaml_data.get("default_max_entries", Settings.default_max_entries)),
            "default_max_entries",
        ),
        color=resolved_color,
        max_read_errors=_to_int(
            yaml_data.get("max_read_errors", Settings.max_read_errors), "max_read_errors"
        ),
        accounts={str(k): str(v) for k, v in accounts.items()},
    )


def parse_date(value: str, end_of_day: bool = False) -> datetime:
    """Parse YYYY-MM-DD or YYYY-MM-DD HH:MM:SS.

    A date-only value with ``end_of_day`` covers the whole day.
    """
    text = value.strip()
    try:
        return datetime.strptime(text, DATETIME_FORMAT)
    except ValueError:
        pass
    try:
        day = datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        raise ConfigurationError(
            f"Invalid date {value!r}, expected YYYY-MM-DD or YYYY-MM-DD HH:MM:SS"
        ) from None
    if end_of_day:
        return datetime.combine(day.date(), time.max)
    return day


def parse_levels(values) -> frozenset[int]:
    """Translate level arguments (numeric codes or mnemonics) into raw codes."""
    codes = set()
    for value in values or []:
        text = str(value).strip().lower()
        if text in LEVEL_MNEMONICS:
            codes |= LEVEL_MNEMONICS[text]
            continue
        try:
            code = int(text)
        except ValueError:
            raise ConfigurationError(f"Unknown log level {value!r}") from None
        if code not in SEVERITIES:
            raise ConfigurationError(f"Log level {code} is out of range (0-5)")
        codes.add(code)
    return frozenset(codes)


def parse_max_entries(value: str | None, default: int) -> int | None:
    """Max entries from -m, falling back to the default. Zero or negative means unbounded."""
    if value is None:
        count = default
    else:
        try:
            count = int(value)
        except ValueError:
            raise ConfigurationError(f"Invalid value for --max: {value!r}") from None
    return count if count > 0 else None


def parse_record_id(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid record id: {value!r}") from None


def build_query_config(args, settings: Settings) -> QueryConfiguration:
    """Convert parsed CLI arguments into an immutable QueryConfiguration."""
    query_from = parse_date(args.from_date) if getattr(args, "from_date", None) else None
    query_to = parse_date(args.to_date, end_of_day=True) if getattr(args, "to_date", None) else None
    if query_from and query_to and query_from > query_to:
        raise ConfigurationError("--from must not be later than --to")

    terms = tuple(t for t in (getattr(args, "search", None) or []) if t)

    return QueryConfiguration(
        log_name=getattr(args, "log_name", None),
        record_id=parse_record_id(getattr(args, "record_id", None)),
        max_entries=parse_max_entries(getattr(args, "max", None), settings.default_max_entries),
        reverse_direction=bool(getattr(args, "reverse", False)),
        query_from=query_from,
        query_to=query_to,
        log_levels=parse_levels(getattr(args, "level", None)),
        search_terms=terms,
        search_must_match_all=bool(getattr(args, "all", False)),
        export_path=getattr(args, "export", None),
    )
