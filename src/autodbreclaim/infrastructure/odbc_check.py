"""
ODBC driver detection and diagnostics.

Lists installed ODBC drivers and flags the SQL Server ones.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import pyodbc

logger = logging.getLogger(__name__)

MIN_RECOMMENDED_VERSION = 17


@dataclass
class DriverReport:
    """Installed ODBC drivers split into SQL Server and other drivers."""

    sql_server: List[str] = field(default_factory=list)
    other: List[str] = field(default_factory=list)

    @property
    def has_sql_server_driver(self) -> bool:
        return bool(self.sql_server)

    @staticmethod
    def is_recommended(driver: str) -> bool:
        """ODBC Driver 17 or newer."""
        if "ODBC Driver " not in driver:
            return False
        version = driver.split("ODBC Driver ")[1].split(" ")[0]
        return version.isdigit() and int(version) >= MIN_RECOMMENDED_VERSION


def check_odbc_drivers() -> DriverReport:
    """
    Collect available ODBC drivers.

    Returns:
        DriverReport with SQL Server drivers sorted newest first
    """
    drivers = pyodbc.drivers()
    report = DriverReport()

    for driver in drivers:
        if "SQL Server" in driver:
            report.sql_server.append(driver)
        else:
            report.other.append(driver)

    report.sql_server.sort(reverse=True)
    report.other.sort()

    if not report.sql_server:
        logger.error("No SQL Server ODBC drivers detected")
    logger.info("ODBC drivers detected: %d total, %d SQL Server",
                len(drivers), len(report.sql_server))
    return report
