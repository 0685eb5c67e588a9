"""
AutoDBReclaim - SQL Server Storage Capacity Reclaim Tool

Scheduled maintenance entry point: checks each hosted database's storage
usage against its maximum size and clears the designated table when usage
crosses the configured threshold.
"""

from autodbreclaim.interface.cli import main


if __name__ == "__main__":
    main()
