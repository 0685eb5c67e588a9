"""
AutoDBReclaim - SQL Server storage capacity reclaim tool.

Inspects each hosted database's storage usage against its configured maximum
and clears a designated table when usage crosses a threshold.
"""

__version__ = "1.0.0"
