"""
Configuration for Noteport.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """SQLite note store configuration."""

    path: str = "data/noteport.db"


class StorageConfig(BaseModel):
    """Object storage configuration."""

    backend: str = "local"  # local, memory
    base_path: str = "data/attachments"
    base_url: str = "/files"


class ImportConfig(BaseModel):
    """Import pipeline behaviour."""

    default_notebook_name: str = "Imported Notes"
    source_application: str = "Noteport Import"
    # 1 keeps note processing sequential
    max_concurrency: int = Field(default=1, ge=1)
    job_list_limit: int = Field(default=10, ge=1)
    max_upload_bytes: int = 100 * 1024 * 1024


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    imports: ImportConfig = Field(default_factory=ImportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            NOTEPORT_DATABASE_PATH: SQLite database file
            NOTEPORT_STORAGE_BACKEND: Object storage backend (local, memory)
            NOTEPORT_STORAGE_BASE_PATH: Root directory for local attachments
            NOTEPORT_STORAGE_BASE_URL: Public URL prefix for stored attachments
            NOTEPORT_IMPORT_DEFAULT_NOTEBOOK: Notebook used when none is named
            NOTEPORT_IMPORT_SOURCE_APPLICATION: Label for non-ENEX uploads
            NOTEPORT_IMPORT_MAX_CONCURRENCY: Notes processed concurrently per job
            NOTEPORT_IMPORT_JOB_LIST_LIMIT: Default page size for job listings
            NOTEPORT_IMPORT_MAX_UPLOAD_BYTES: Upload size limit enforced by the API
            NOTEPORT_LOG_LEVEL: Log level
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            if value == "":
                return default
            # bool before int: bool is an int subclass
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        defaults = cls()

        return cls(
            database=DatabaseConfig(
                path=get_env("NOTEPORT_DATABASE_PATH", defaults.database.path),
            ),
            storage=StorageConfig(
                backend=get_env("NOTEPORT_STORAGE_BACKEND", defaults.storage.backend),
                base_path=get_env("NOTEPORT_STORAGE_BASE_PATH", defaults.storage.base_path),
                base_url=get_env("NOTEPORT_STORAGE_BASE_URL", defaults.storage.base_url),
            ),
            imports=ImportConfig(
                default_notebook_name=get_env(
                    "NOTEPORT_IMPORT_DEFAULT_NOTEBOOK", defaults.imports.default_notebook_name
                ),
                source_application=get_env(
                    "NOTEPORT_IMPORT_SOURCE_APPLICATION", defaults.imports.source_application
                ),
                max_concurrency=get_env(
                    "NOTEPORT_IMPORT_MAX_CONCURRENCY", defaults.imports.max_concurrency
                ),
                job_list_limit=get_env(
                    "NOTEPORT_IMPORT_JOB_LIST_LIMIT", defaults.imports.job_list_limit
                ),
                max_upload_bytes=get_env(
                    "NOTEPORT_IMPORT_MAX_UPLOAD_BYTES", defaults.imports.max_upload_bytes
                ),
            ),
            logging=LoggingConfig(
                level=get_env("NOTEPORT_LOG_LEVEL", "INFO"),
                log_to_file=get_env("NOTEPORT_LOG_TO_FILE", True),
                log_dir=get_env("NOTEPORT_LOG_DIR", "logs"),
                file_rotation=get_env("NOTEPORT_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("NOTEPORT_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("NOTEPORT_LOG_COMPRESSION", "zip"),
                serialize=get_env("NOTEPORT_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        final_dict = {**config_dict}

        # A section set in the environment replaces the YAML section
        default = cls()
        for section in ("database", "storage", "imports", "logging"):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
