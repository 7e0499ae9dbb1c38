"""
fdw-catalog Application Configuration
=====================================

PURPOSE:
    Pydantic-Settings based configuration for the remote server catalog.
    All settings can be overridden via environment variables (FDWCATALOG_ prefix).

NOTES:
    - credential_secret has no auto-generated fallback. Encrypting a user
      mapping password without it raises ConfigurationError.
    - previous_credential_secret is only consulted for decryption while a
      rotation is in progress (see scripts/reencrypt_credentials.py).
"""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Runtime configuration for the catalog service."""

    app_name: str = "fdw-catalog"
    debug: bool = False

    # Catalog storage
    data_directory: str = "/data"
    database_url: Optional[str] = None

    # None = infer from the catalog dialect (PostgreSQL supports transactional DDL)
    transactional_ddl: Optional[bool] = None

    # Secret used to derive the user mapping password encryption key.
    credential_secret: Optional[str] = None
    # Previous secret, for dual-decrypt during rotation. Remove after re-encryption.
    previous_credential_secret: Optional[str] = None

    # Logging
    log_dir: str = "logs"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "FDWCATALOG_"

    def get_database_url(self) -> str:
        """Resolve the catalog URL.

        Order: FDWCATALOG_DATABASE_URL, then the bare DATABASE_URL used by the
        deployment tooling, then a SQLite file under data_directory.
        """
        if self.database_url:
            return self.database_url
        env_url = os.environ.get("DATABASE_URL")
        if env_url:
            return env_url
        return f"sqlite:///{Path(self.data_directory) / 'fdwcatalog.db'}"


settings = Settings()
