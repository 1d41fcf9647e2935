"""Configuration models for the content mirror."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContentfulConfig(BaseModel):
    """Configuration for the upstream content repository."""

    space_id: str = Field(default=..., min_length=1, description="Space identifier")
    access_token: str = Field(default=..., min_length=1, description="Delivery API access token")
    host: str = Field(default="cdn.contentful.com", description="API host name")
    environment: str = Field(default="master", description="Environment identifier")
    initial_content_type: str | None = Field(
        default=None,
        description="Content type filter applied on the initial sync only",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP request timeout")
    max_retries: int = Field(
        default=3, ge=0, le=10, description="Transport retries for transient HTTP failures"
    )


class StoreConfig(BaseModel):
    """Configuration for the record store."""

    type: Literal["memory", "sqlite"] = Field(default="memory", description="Store backend")
    path: str = Field(
        default=":memory:", description="SQLite database path (sqlite backend only)"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the APP_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    contentful: ContentfulConfig
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
