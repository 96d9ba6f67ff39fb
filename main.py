"""eventy — query, filter, and export event log records."""

from eventy.cli import main

if __name__ == "__main__":
    main()
