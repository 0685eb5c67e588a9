"""
Reclaim Settings domain model.

Run-wide settings: the capacity threshold, the designated remediation
table and how missing tables and parallelism are handled.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import MissingTablePolicy

DEFAULT_THRESHOLD = 0.8
DEFAULT_REMEDIATION_TABLE = "dbo.EventLog"


class ReclaimSettings(BaseModel):
    """
    Domain model for reclaim run settings.

    Applied uniformly to every database in a run; there are no
    per-database overrides.
    """

    model_config = ConfigDict(extra="ignore")

    threshold: float = Field(
        DEFAULT_THRESHOLD,
        description="Fraction of maximum size above which the table is cleared",
    )
    remediation_table: str = Field(
        DEFAULT_REMEDIATION_TABLE,
        description="Table truncated in databases over the threshold ([schema.]table)",
    )
    missing_table: MissingTablePolicy = Field(
        MissingTablePolicy.SKIP,
        description="Skip or fail databases that lack the remediation table",
    )
    system_databases: List[str] = Field(
        default_factory=lambda: ["master"],
        description="Databases never inspected",
    )
    max_workers: int = Field(1, description="Concurrent per-database checks (1 = sequential)")

    @field_validator("threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Threshold must be a fraction of capacity."""
        if not 0 < v <= 1:
            raise ValueError("Threshold must be greater than 0 and at most 1")
        return v

    @field_validator("remediation_table")
    @classmethod
    def validate_table(cls, v: str) -> str:
        """Accept 'table' or 'schema.table'."""
        v = v.strip()
        parts = v.split(".")
        if not v or len(parts) > 2 or not all(p.strip() for p in parts):
            raise ValueError("Remediation table must be 'table' or 'schema.table'")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v

    def is_system_database(self, name: str) -> bool:
        """Case-insensitive match against the excluded system databases."""
        return name.lower() in {db.lower() for db in self.system_databases}
