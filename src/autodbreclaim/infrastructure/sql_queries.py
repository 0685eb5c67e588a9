"""
SQL query definitions for capacity reclaim.

The catalog query runs against master; the remaining queries run
inside each target database.
"""

# Latest sys.resource_stats sample per database, joined to sys.databases.
CATALOG_SIZES = """
SELECT
    d.name AS database_name,
    rs.storage_in_megabytes AS size_mb
FROM sys.databases AS d
INNER JOIN sys.resource_stats AS rs
    ON rs.database_name = d.name
WHERE rs.start_time = (
        SELECT MAX(latest.start_time)
        FROM sys.resource_stats AS latest
        WHERE latest.database_name = d.name
    )
GROUP BY d.name, rs.storage_in_megabytes
"""

MAX_SIZE_BYTES = (
    "SELECT CAST(DATABASEPROPERTYEX(DB_NAME(), 'MaxSizeInBytes') AS BIGINT)"
)

TABLE_EXISTS = "SELECT CASE WHEN OBJECT_ID(?, 'U') IS NULL THEN 0 ELSE 1 END"


def quote_identifier(name: str) -> str:
    """Bracket-quote an identifier the way QUOTENAME does."""
    return "[" + name.replace("]", "]]") + "]"


def qualified_table(table: str) -> str:
    """
    Quote a '[schema.]table' reference.

    Args:
        table: Table name, optionally schema-qualified (defaults to dbo)

    Returns:
        Quoted two-part name, e.g. [dbo].[EventLog]
    """
    parts = [p.strip().strip("[]") for p in table.split(".")]
    if len(parts) == 1:
        parts.insert(0, "dbo")
    return ".".join(quote_identifier(p) for p in parts)


def truncate_table(table: str) -> str:
    """Build the remediation statement for the designated table."""
    return f"TRUNCATE TABLE {qualified_table(table)}"
