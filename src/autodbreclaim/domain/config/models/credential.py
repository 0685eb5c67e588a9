"""
Credential domain model.

This module defines the Credential domain entity for
handling database credentials.
"""

from pydantic import BaseModel, Field, SecretStr, field_validator


class Credential(BaseModel):
    """
    Domain model for database credentials.

    Holds the username/password pair used for every connection to a server.
    """

    username: str = Field(..., description="Database username")
    password: SecretStr = Field(..., description="Database password")

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username is not empty."""
        if not v or not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()

    def get_password(self) -> str:
        """Get the plain text password."""
        return self.password.get_secret_value()  # pylint: disable=no-member
