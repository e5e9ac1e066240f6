"""Typed runtime settings with dotenv support and startup validation."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for API runtime, polling, and alerting.

    Environment variable names map directly to field names in uppercase.
    Example: `wpt_api_key` reads from `WPT_API_KEY`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        database_url: SQLAlchemy DSN holding job, scheduling, threshold, and result tables.
        log_level: Minimum structlog level name.
        wpt_api_key: WebPageTest API key.
        wpt_base_url: WebPageTest server base URL.
        wpt_location: Device/network profile passed as the `location` parameter.
        wpt_request_timeout_seconds: HTTP request timeout for submit and poll calls.
        max_outstanding_jobs: Fixed number of job slots.
        poll_interval_seconds: Interval between poll-cycle activations.
        scheduler_owner_id: Key under which the active activation id is persisted.
        scheduler_worker_refresh_seconds: How often the worker re-reads registered activations.
        smtp_host: SMTP server host for alert email.
        smtp_port: SMTP server port.
        smtp_username: Optional SMTP login name.
        smtp_password: Optional SMTP login password.
        smtp_use_tls: Whether to upgrade the SMTP session with STARTTLS.
        alert_sender: From address of alert email.
        alert_recipients: Comma-separated alert recipient addresses.
        api_default_limit: Default list endpoint limit.
        api_max_limit: Maximum allowed list endpoint limit.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8000, ge=1, le=65535)
    database_url: str = Field(default="sqlite:///wpt_monitor.db")
    log_level: str = Field(default="INFO")
    wpt_api_key: str = Field(min_length=1)
    wpt_base_url: str = Field(default="https://www.webpagetest.org")
    wpt_location: str = Field(default="Dulles:Chrome.Cable")
    wpt_request_timeout_seconds: float = Field(default=30.0, gt=0)
    max_outstanding_jobs: int = Field(default=10, ge=1)
    poll_interval_seconds: int = Field(default=300, ge=1)
    scheduler_owner_id: str = Field(default="wpt-monitor", min_length=1)
    scheduler_worker_refresh_seconds: float = Field(default=30.0, gt=0)
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_use_tls: bool = Field(default=True)
    alert_sender: str = Field(default="wpt-monitor@localhost")
    alert_recipients: str = Field(default="")
    api_default_limit: int = Field(default=50, ge=1)
    api_max_limit: int = Field(default=200, ge=1)

    @field_validator("wpt_api_key", "wpt_base_url", "wpt_location", "scheduler_owner_id")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized_value

    @field_validator("api_max_limit")
    @classmethod
    def _validate_limit_bounds(cls, value: int, info) -> int:
        default_limit = info.data.get("api_default_limit", 50)
        if value < default_limit:
            raise ValueError("api_max_limit must be greater than or equal to api_default_limit")
        return value

    def settings_alert_recipient_list(self) -> list[str]:
        """Return alert recipients parsed from the comma-separated setting.

        Returns:
            list[str]: Non-blank recipient addresses in configured order.
        """

        return [recipient.strip() for recipient in self.alert_recipients.split(",") if recipient.strip()]


class DatabaseUrlSettings(BaseSettings):
    """Minimal settings model used by migration tooling.

    This model validates only database connectivity inputs so schema
    migration commands can run without the full runtime settings.

    Attributes:
        database_url: SQLAlchemy DSN for schema migrations.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    database_url: str = Field(default="sqlite:///wpt_monitor.db")


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error


def config_load_database_url() -> str:
    """Load and validate only the database URL setting.

    Returns:
        str: Non-empty database URL for migration and db tooling.

    Raises:
        SettingsLoadError: Raised when database URL cannot be loaded.
    """

    try:
        database_settings = DatabaseUrlSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Database URL configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error

    database_url = str(database_settings.database_url).strip()
    if not database_url:
        raise SettingsLoadError("Database URL configuration validation failed. DATABASE_URL must not be blank.")
    return database_url
