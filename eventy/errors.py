"""Exception taxonomy shared by the engine, the log source, and the CLI."""


class EventyError(Exception):
    """Base class for every error eventy reports."""


class ConfigurationError(EventyError):
    """Bad or missing command-line / config input. Fatal before querying."""


class AccessError(EventyError):
    """A log could not be enumerated or opened."""


class NotFoundError(AccessError):
    """The requested log does not exist."""


class ReadError(EventyError):
    """A single record could not be read."""


class ResolutionError(EventyError):
    """An owner id could not be translated to a display name."""


class ExportError(EventyError):
    """Serialization or file-write failure during export."""
