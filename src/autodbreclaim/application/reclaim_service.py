"""
Capacity Reclaimer - clears a designated table in databases near capacity.

Flow per server:
1. Read the administrative catalog (master) for each database's latest size
2. For every non-system database, open a scoped connection and read its
   maximum configured size
3. Compare against max_size * threshold
4. Truncate the designated table when over the threshold
5. Close the connection, record the outcome, move on

A failure inside one database is recorded and does not stop the others.
A failure reading the catalog aborts the run with CatalogError. A missing
ODBC driver propagates as DriverNotFoundError.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, List, Optional

from autodbreclaim.domain.config import MissingTablePolicy, ReclaimSettings
from autodbreclaim.domain.errors import CatalogError, DriverNotFoundError, ReclaimError
from autodbreclaim.domain.models import (
    CapacityFact,
    DatabaseOutcome,
    DatabaseRecord,
    Decision,
    ReclaimAction,
    ReclaimReport,
)
from autodbreclaim.infrastructure import sql_queries

if TYPE_CHECKING:
    from autodbreclaim.infrastructure.sql_server import SqlConnector

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[DatabaseOutcome], None]


class CapacityReclaimer:
    """
    Inspects every hosted database on one server and reclaims space in
    those above the threshold.

    Usage:
        reclaimer = CapacityReclaimer(connector, ReclaimSettings(threshold=0.8))
        report = reclaimer.run()
    """

    def __init__(
        self,
        connector: SqlConnector,
        settings: ReclaimSettings | None = None,
        dry_run: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ):
        self.connector = connector
        self.settings = settings or ReclaimSettings()
        self.dry_run = dry_run
        self.on_outcome = on_outcome
        self._statement = sql_queries.truncate_table(self.settings.remediation_table)
        self._table = sql_queries.qualified_table(self.settings.remediation_table)

    @property
    def server(self) -> str:
        return getattr(self.connector, "server_instance", "unknown")

    def run(self) -> ReclaimReport:
        """
        Execute one reclaim pass over the server.

        Returns:
            ReclaimReport with one outcome per inspected database

        Raises:
            CatalogError: If the catalog cannot be read
        """
        report = ReclaimReport(
            server=self.server,
            threshold=self.settings.threshold,
            dry_run=self.dry_run,
        )

        records = [r for r in self.fetch_catalog()
                   if not self.settings.is_system_database(r.name)]

        if not records:
            logger.info("No user databases found on %s, nothing to do", self.server)
            return report

        logger.info(
            "Checking %d database(s) on %s (threshold=%.2f%s)",
            len(records), self.server, self.settings.threshold,
            ", dry run" if self.dry_run else "",
        )

        if self.settings.max_workers > 1 and len(records) > 1:
            # Each worker opens its own connection; outcomes keep catalog order
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                outcomes = list(executor.map(self.process_database, records))
            for outcome in outcomes:
                self._emit(outcome)
        else:
            outcomes = []
            for record in records:
                outcome = self.process_database(record)
                outcomes.append(outcome)
                self._emit(outcome)

        report.outcomes = outcomes
        logger.info(
            "Finished %s: %d remediated, %d failed, %d total",
            self.server, report.remediated, report.failed, len(outcomes),
        )
        return report

    def fetch_catalog(self) -> List[DatabaseRecord]:
        """
        Read the latest storage sample for every database from master.

        Raises:
            CatalogError: On connection or query failure
            DriverNotFoundError: No ODBC driver is installed
        """
        try:
            with self.connector.connect() as conn:
                rows = self.connector.fetch_rows(conn, sql_queries.CATALOG_SIZES)
        except DriverNotFoundError:
            raise
        except Exception as e:
            logger.error("Catalog query failed on %s: %s", self.server, e)
            raise CatalogError(self.server, str(e)) from e

        records = []
        for row in rows:
            name = row.get("database_name")
            size = row.get("size_mb")
            if name is None or size is None:
                logger.warning("Ignoring incomplete catalog row: %s", row)
                continue
            records.append(DatabaseRecord(name=name, current_size_mb=float(size)))

        logger.debug("Catalog returned %d database(s)", len(records))
        return records

    def process_database(self, record: DatabaseRecord) -> DatabaseOutcome:
        """Inspect one database, isolating any failure to that database."""
        try:
            return self._inspect(record)
        except Exception as e:
            logger.error("Failed processing %s: %s", record.name, e)
            return DatabaseOutcome(
                database=record.name,
                action=ReclaimAction.FAILED,
                error=str(e),
            )

    def _inspect(self, record: DatabaseRecord) -> DatabaseOutcome:
        with self.connector.connect(record.name) as conn:
            max_bytes = self.connector.fetch_scalar(conn, sql_queries.MAX_SIZE_BYTES)
            if max_bytes is None:
                raise ReclaimError(f"Maximum size not available for {record.name}")

            decision = Decision.evaluate(
                record, CapacityFact.from_bytes(max_bytes), self.settings.threshold
            )
            logger.debug(
                "%s: current=%.2f MB max=%.2f MB target=%.2f MB",
                record.name, record.current_size_mb,
                decision.target_size_mb / self.settings.threshold,
                decision.target_size_mb,
            )

            if not decision.perform_action:
                return DatabaseOutcome(record.name, ReclaimAction.NO_ACTION, decision)

            if not self.connector.fetch_scalar(conn, sql_queries.TABLE_EXISTS, self._table):
                return self._missing_table(record, decision)

            if self.dry_run:
                logger.info("Dry run: would execute '%s' on %s", self._statement, record.name)
                return DatabaseOutcome(record.name, ReclaimAction.WOULD_REMEDIATE, decision)

            logger.warning("Executing '%s' on %s", self._statement, record.name)
            self.connector.execute(conn, self._statement)
            return DatabaseOutcome(record.name, ReclaimAction.REMEDIATED, decision)

    def _missing_table(self, record: DatabaseRecord, decision: Decision) -> DatabaseOutcome:
        message = f"table {self._table} not found"
        if self.settings.missing_table is MissingTablePolicy.FAIL:
            logger.error("%s: %s", record.name, message)
            return DatabaseOutcome(record.name, ReclaimAction.FAILED, decision, message)
        logger.warning("%s: %s, skipping", record.name, message)
        return DatabaseOutcome(record.name, ReclaimAction.SKIPPED, decision, message)

    def _emit(self, outcome: DatabaseOutcome) -> None:
        if self.on_outcome:
            self.on_outcome(outcome)
