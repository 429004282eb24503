"""
Configuration system for sheetsync using Pydantic.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class DatabaseConnection(BaseModel):
    """Database connection configuration for the metadata store."""

    host: str = Field(..., description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field(..., description="Database name")
    user: str = Field(..., description="Database user")
    password: str = Field(..., description="Database password")
    ssl_mode: str = Field("prefer", description="SSL mode")
    command_timeout: int = Field(60, description="Command timeout in seconds")


class GoogleSheetsConfig(BaseModel):
    """Google Sheets API configuration."""

    access_token: Optional[str] = Field(
        None, description="OAuth bearer token with spreadsheets scope"
    )
    base_url: str = Field(
        "https://sheets.googleapis.com/v4", description="Sheets API base URL"
    )
    last_column: str = Field("Z", description="Last column letter to read")
    sample_rows: int = Field(5, description="Data rows read for type inference")
    max_samples: int = Field(3, description="Samples kept per column")
    timeout: int = Field(30, description="Request timeout in seconds")
    max_retries: int = Field(3, description="Maximum number of retries")
    retry_delay: float = Field(1.0, description="Base retry delay in seconds")

    @field_validator("last_column")
    @classmethod
    def validate_last_column(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalpha():
            raise ValueError("last_column must be a column letter like 'Z' or 'AZ'")
        return v


class MetadataStoreConfig(BaseModel):
    """Persisted column metadata store configuration."""

    connection: Optional[DatabaseConnection] = Field(
        None, description="Connection details"
    )
    schema_name: str = Field("sheetsync", description="Schema holding metadata tables")
    table_name: str = Field("column_metadata", description="Metadata table name")
    min_pool_size: int = Field(1, description="Minimum connections in pool")
    max_pool_size: int = Field(5, description="Maximum connections in pool")


class SyncConfig(BaseModel):
    """Column sync behaviour."""

    drop_removed_on_apply: bool = Field(
        True, description="Drop columns no longer in the sheet when applying a sync"
    )
    infer_types_on_init: bool = Field(
        True, description="Infer column types when first saving metadata"
    )
    default_tab: Optional[str] = Field(None, description="Sheet tab to read by default")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", description="Log level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Optional[str] = Field(None, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")


class SheetsyncConfig(BaseSettings):
    """Main sheetsync configuration."""

    service_name: str = Field("sheetsync", description="Service name")
    debug: bool = Field(False, description="Enable debug mode")

    google: GoogleSheetsConfig = Field(
        default_factory=GoogleSheetsConfig, description="Google Sheets configuration"
    )
    metadata_store: MetadataStoreConfig = Field(
        default_factory=MetadataStoreConfig, description="Metadata store configuration"
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig, description="Column sync configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHEETSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "SheetsyncConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data

    def validate_config(self) -> None:
        """Validate the entire configuration for consistency."""
        token = self.google.access_token
        if not token or token.startswith("${"):
            raise ConfigurationError(
                "Google access token is not set (google.access_token)"
            )

        store = self.metadata_store
        if store.min_pool_size < 0 or store.max_pool_size < 1:
            raise ConfigurationError("Metadata store pool sizes must be positive")
        if store.min_pool_size > store.max_pool_size:
            raise ConfigurationError(
                f"metadata_store.min_pool_size ({store.min_pool_size}) exceeds "
                f"max_pool_size ({store.max_pool_size})"
            )

        if self.google.sample_rows < 1:
            raise ConfigurationError("google.sample_rows must be at least 1")

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_none=True),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )


def configure_logging(config: LoggingConfig, debug: bool = False) -> None:
    """Apply logging configuration to the root logger."""
    level = logging.DEBUG if debug else getattr(logging, config.level)
    formatter = logging.Formatter(config.format)

    handlers: list = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            RotatingFileHandler(
                config.file,
                maxBytes=config.max_size,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
