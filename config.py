"""
Configuration management for the incident reporting dashboard.

Centralizes all configuration with type-safe defaults and validation.
"""

from typing import Annotated, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from dotenv import load_dotenv

from models.incident import MAX_ATTACHMENT_BYTES
from regions import DEFAULT_REGION, is_valid_region

# Load environment variables
load_dotenv()


class AppConfig(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Flask Configuration
    flask_debug: bool = Field(
        default=False,
        description="Enable Flask debug mode"
    )
    flask_host: str = Field(
        default="0.0.0.0",
        description="Flask server host"
    )
    flask_port: int = Field(
        default=5001,
        description="Flask server port"
    )
    testing: bool = Field(
        default=False,
        description="Enable testing mode"
    )

    # CORS Configuration
    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS"
    )
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # Storage Configuration
    storage_backend: str = Field(
        default="sqlite",
        description="Key-value backend for collections (sqlite or memory)"
    )
    storage_db_path: str = Field(
        default="urgences.db",
        description="Path to the SQLite key-value database"
    )
    storage_key_prefix: str = Field(
        default="urgences_",
        description="Prefix of the persisted collection keys"
    )
    seed_on_startup: bool = Field(
        default=True,
        description="Seed default admins, alerts and guides into empty storage"
    )
    default_region: str = Field(
        default=DEFAULT_REGION,
        description="Region used when a report carries no region"
    )

    # Domain behaviour switches
    enforce_forward_status: bool = Field(
        default=False,
        description="Reject status changes that move an incident backwards"
    )
    enforce_admin_permissions: bool = Field(
        default=False,
        description="Deny edit/delete to regional admins lacking the permission flag"
    )
    optimistic_concurrency: bool = Field(
        default=False,
        description="Reject writes computed from a stale collection read"
    )
    auto_dispatch_vital_emergencies: bool = Field(
        default=True,
        description="Move new vital emergencies to RESPONDERS_EN_ROUTE"
    )

    # Attachments and image classification
    max_attachment_bytes: int = Field(
        default=MAX_ATTACHMENT_BYTES,
        description="Maximum decoded attachment size in bytes (at most 10MB)"
    )
    detection_delay_seconds: float = Field(
        default=1.5,
        description="Simulated latency of the image classifier"
    )
    detection_confidence_threshold: float = Field(
        default=0.6,
        description="Detections are applied only above this confidence"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_file: str = Field(
        default="logs/app.log",
        description="Log file path"
    )
    log_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Maximum log file size in bytes"
    )
    log_backup_count: int = Field(
        default=10,
        description="Number of backup log files to keep"
    )

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator(
        'flask_debug', 'testing', 'cors_enabled', 'seed_on_startup',
        'enforce_forward_status', 'enforce_admin_permissions',
        'optimistic_concurrency', 'auto_dispatch_vital_emergencies',
        mode='before'
    )
    @classmethod
    def parse_bool(cls, v):
        """Parse boolean values from environment strings."""
        if isinstance(v, str):
            return v.lower() in ('true', '1', 'yes', 'on')
        return v

    @field_validator('storage_backend')
    @classmethod
    def check_storage_backend(cls, v):
        """Only the sqlite and memory backends exist."""
        v = v.lower()
        if v not in ('sqlite', 'memory'):
            raise ValueError(f"storage_backend must be 'sqlite' or 'memory', got {v!r}")
        return v

    @field_validator('default_region')
    @classmethod
    def check_default_region(cls, v):
        if not is_valid_region(v):
            raise ValueError(f"default_region {v!r} is not a known region")
        return v

    @field_validator('detection_confidence_threshold')
    @classmethod
    def check_threshold(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError("detection_confidence_threshold must be within [0, 1]")
        return v

    @field_validator('max_attachment_bytes')
    @classmethod
    def check_attachment_limit(cls, v):
        """Stored incidents never accept attachments above 10MB, so the setting can only lower it."""
        if not 0 < v <= MAX_ATTACHMENT_BYTES:
            raise ValueError(f"max_attachment_bytes must be within (0, {MAX_ATTACHMENT_BYTES}]")
        return v


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config
