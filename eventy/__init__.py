"""eventy — query, filter, and export event log records."""

__version__ = "0.2.0"
