"""
Sync Operation Parameters

Defines parameter classes for export and import operations, providing
type-safe configuration for database access and import options.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def validate_secret_value(secret: str) -> str:
    """
    Check that a secret can be used as a file stem.

    The secret is an opaque correlation token, but it becomes part of file
    names in the publish and staging directories.

    Raises:
        ValueError: If the secret is empty or contains a path component
    """
    if not secret or not secret.strip():
        raise ValueError("secret must not be empty")
    if secret in (".", "..") or "/" in secret or "\\" in secret:
        raise ValueError(f"secret must not contain path separators: {secret!r}")
    return secret


class DatabaseParams(BaseModel):
    """
    Connection parameters for the relational database.

    Used to build the dump and load command lines. Every value ends up as its
    own argv entry, so none of them can break out of its argument position.

    Attributes:
        host: Database server host name
        port: Database server port (defaults to 3306)
        name: Database name
        user: Database user
        password: Database password (omitted from the command line if empty)

    Example:
        ```python
        database = DatabaseParams(
            host="127.0.0.1",
            name="sulu",
            user="sulu",
            password="p@ss;rm"
        )
        ```
    """
    host: str = Field(default="127.0.0.1", description="Database host")
    port: int = Field(default=3306, gt=0, lt=65536, description="Database port")
    name: str = Field(..., min_length=1, description="Database name")
    user: str = Field(..., min_length=1, description="Database user")
    password: Optional[str] = Field(default=None, description="Database password")

    @field_validator("port", mode="before")
    @classmethod
    def default_port(cls, v):
        """A missing port means the server default."""
        if v is None or v == "":
            return 3306
        return v

    @property
    def has_password(self) -> bool:
        """Check if a password is configured."""
        return bool(self.password)

    def connection_args(self) -> List[str]:
        """
        Connection arguments shared by ``mysqldump`` and ``mysql``.

        Returns:
            Argument list ending with the database name
        """
        args = ["-h", self.host, "-P", str(self.port), "-u", self.user]
        if self.has_password:
            args.append(f"-p{self.password}")
        args.append(self.name)
        return args

    def masked(self) -> "DatabaseParams":
        """Copy of these parameters with the password hidden."""
        return self.model_copy(update={"password": "****" if self.has_password else None})


class ImportParams(BaseModel):
    """
    Options of an import run.

    Attributes:
        remote_host: Base URL (or bare host) of the exporting installation
        skip_assets: Skip downloading and extracting the asset archive
    """
    remote_host: str = Field(..., min_length=1, description="Remote base URL or host")
    skip_assets: bool = Field(default=False, description="Skip the asset archive")

    @field_validator("remote_host")
    @classmethod
    def validate_remote_host(cls, v):
        """Remote host must not be blank."""
        if not v.strip():
            raise ValueError("remote host must not be empty")
        return v

    @property
    def include_assets(self) -> bool:
        """Check if the asset archive is part of this import."""
        return not self.skip_assets
