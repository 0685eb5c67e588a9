"""
Reclaim Target domain model.

This module defines the ReclaimTarget domain entity representing
a SQL Server whose databases are checked for storage capacity.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .credential import Credential
from .enums import AuthType


class ReclaimTarget(BaseModel):
    """
    Domain model for a SQL Server target.

    Represents a single server whose hosted databases are inspected.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., description="Unique identifier/alias for this target")
    name: Optional[str] = Field(None, description="Human-readable display name")
    server: str = Field(..., description="SQL Server host name or address")
    instance: Optional[str] = Field(None, description="Named instance (null for default)")
    port: Optional[int] = Field(None, description="SQL Server port")
    auth_type: AuthType = Field(AuthType.SQL, description="Authentication method", alias="auth")
    username: Optional[str] = Field(None, description="SQL login name")
    password: Optional[SecretStr] = Field(None, description="SQL login password")
    credentials_ref: Optional[str] = Field(
        None, description="Reference to SQL credentials file", alias="credential_file"
    )
    connect_timeout: int = Field(30, description="Seconds to wait for SQL connection")
    enabled: bool = Field(True, description="Whether this target is included in runs")

    @field_validator("auth_type", mode="before")
    @classmethod
    def normalize_auth(cls, v):
        """Accept "integrated" as a synonym for Windows authentication."""
        if isinstance(v, str) and v.lower() == "integrated":
            return AuthType.WINDOWS
        return v

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        """Validate server name format."""
        if not v or not v.strip():
            raise ValueError("Server name cannot be empty")
        return v.strip()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: Optional[int]) -> Optional[int]:
        """Validate port number."""
        if v is not None and (v < 1 or v > 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def display_name(self) -> str:
        """Human-readable server name for reports."""
        return self.name or self.server_instance

    @property
    def server_instance(self) -> str:
        """Server instance string for connection."""
        if self.port:
            return f"{self.server},{self.port}"
        if self.instance:
            return f"{self.server}\\{self.instance}"
        return self.server

    @property
    def uses_sql_auth(self) -> bool:
        return AuthType(self.auth_type) is AuthType.SQL

    @property
    def credential(self) -> Optional[Credential]:
        """SQL credential pair, or None for integrated authentication."""
        if not self.uses_sql_auth or not self.username or self.password is None:
            return None
        return Credential(username=self.username, password=self.password)
