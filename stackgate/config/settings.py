"""
Configuration management using Pydantic settings.
Loads configuration from environment variables.
"""
import shlex
from typing import List, Optional
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from stackgate.utils.errors import ConfigurationError


SUPPORTED_EXPORT_FORMATS = ("csv", "parquet")


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class DatabaseConfig(BaseSettings):
    """Database configuration"""
    # Required; checked in AppConfig.validate_all
    user: str = Field("", alias="POSTGRES_USER")
    password: str = Field("", alias="POSTGRES_PASSWORD")
    db: str = Field("", alias="POSTGRES_DB")
    host: str = Field("", alias="POSTGRES_HOST")
    port: int = Field(5432, alias="POSTGRES_PORT")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def url(self) -> URL:
        """Get database connection URL"""
        return URL.create(
            "postgresql+psycopg2",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.db,
        )

    @property
    def safe_url(self) -> str:
        """Connection URL with the password masked, for logs"""
        return self.url.render_as_string(hide_password=True)


class BrokerConfig(BaseSettings):
    """Streaming broker configuration"""
    address: str = Field("redpanda:9092", alias="KAFKA_BROKER")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def host(self) -> str:
        return self.address.rsplit(":", 1)[0]

    @property
    def port(self) -> int:
        return int(self.address.rsplit(":", 1)[1])


class GateConfig(BaseSettings):
    """Startup gate configuration"""
    poll_interval_seconds: float = Field(2.0, alias="GATE__POLL_INTERVAL_SECONDS")
    max_attempts: Optional[int] = Field(None, alias="GATE__MAX_ATTEMPTS")
    timeout_seconds: Optional[float] = Field(None, alias="GATE__TIMEOUT_SECONDS")
    probe_timeout_seconds: float = Field(5.0, alias="GATE__PROBE_TIMEOUT_SECONDS")
    wait_for_broker: bool = Field(False, alias="GATE__WAIT_FOR_BROKER")
    verify_command: str = Field("pytest test_docker_compose.py", alias="GATE__VERIFY_COMMAND")
    workload_command: str = Field("python init.py", alias="GATE__WORKLOAD_COMMAND")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def verification_enabled(self) -> bool:
        return bool(self.verify_command.strip())


class ExportConfig(BaseSettings):
    """Data export configuration"""
    output_dir: str = Field("data_export", alias="EXPORT__OUTPUT_DIR")
    formats_raw: str = Field("csv,parquet", alias="EXPORT__FORMATS")
    tables_raw: str = Field("", alias="EXPORT__TABLES")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def formats(self) -> List[str]:
        return [fmt.lower() for fmt in _split_csv(self.formats_raw)]

    @property
    def tables(self) -> List[str]:
        return _split_csv(self.tables_raw)


class LoggingConfig(BaseSettings):
    """Logging configuration"""
    level: str = Field("INFO", alias="LOG_LEVEL")
    structured: bool = Field(True, alias="LOG_STRUCTURED")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class AppConfig(BaseSettings):
    """Main application configuration"""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def validate_all(self) -> None:
        """Validate all configuration sections"""
        errors = []

        # Database
        if not self.database.host:
            errors.append("POSTGRES_HOST is required")
        if not self.database.user:
            errors.append("POSTGRES_USER is required")
        if not self.database.password:
            errors.append("POSTGRES_PASSWORD is required")
        if not self.database.db:
            errors.append("POSTGRES_DB is required")
        if not 0 < self.database.port < 65536:
            errors.append("POSTGRES_PORT must be between 1 and 65535")

        # Broker
        host, sep, port = self.broker.address.rpartition(":")
        if not sep or not host or not port.isdecimal():
            errors.append("KAFKA_BROKER must be in host:port form")
        elif not 0 < int(port) < 65536:
            errors.append("KAFKA_BROKER port must be between 1 and 65535")

        # Gate
        if self.gate.poll_interval_seconds <= 0:
            errors.append("GATE__POLL_INTERVAL_SECONDS must be greater than 0")
        if self.gate.max_attempts is not None and self.gate.max_attempts < 1:
            errors.append("GATE__MAX_ATTEMPTS must be at least 1")
        if self.gate.timeout_seconds is not None and self.gate.timeout_seconds <= 0:
            errors.append("GATE__TIMEOUT_SECONDS must be greater than 0")
        if self.gate.probe_timeout_seconds <= 0:
            errors.append("GATE__PROBE_TIMEOUT_SECONDS must be greater than 0")
        if not self.gate.workload_command.strip():
            errors.append("GATE__WORKLOAD_COMMAND is required")
        for name, command in (
            ("GATE__VERIFY_COMMAND", self.gate.verify_command),
            ("GATE__WORKLOAD_COMMAND", self.gate.workload_command),
        ):
            try:
                shlex.split(command)
            except ValueError as e:
                errors.append(f"{name} is not a valid command line: {e}")

        # Export
        if not self.export.formats:
            errors.append("EXPORT__FORMATS must name at least one format")
        for fmt in self.export.formats:
            if fmt not in SUPPORTED_EXPORT_FORMATS:
                errors.append(f"EXPORT__FORMATS contains unsupported format '{fmt}'")

        # Logging
        if self.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"LOG_LEVEL '{self.logging.level}' is not a valid log level")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


_SECTIONS = (
    ("database", DatabaseConfig),
    ("broker", BrokerConfig),
    ("gate", GateConfig),
    ("export", ExportConfig),
    ("logging", LoggingConfig),
)


def _describe_validation_error(error: ValidationError) -> List[str]:
    messages = []
    for item in error.errors():
        name = ".".join(str(part) for part in item.get("loc", ())) or "config"
        if item.get("type") == "missing":
            messages.append(f"{name} is required")
        else:
            messages.append(f"{name}: {item.get('msg')}")
    return messages


def load_config() -> AppConfig:
    """Load and validate configuration, raising ConfigurationError on failure"""
    sections = {}
    messages = []
    for name, section_cls in _SECTIONS:
        try:
            sections[name] = section_cls()
        except ValidationError as e:
            messages.extend(_describe_validation_error(e))

    if messages:
        raise ConfigurationError(
            "Configuration validation failed:\n" + "\n".join(f"  - {m}" for m in messages)
        )

    config = AppConfig(**sections)
    config.validate_all()
    return config


# Global config instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create global configuration instance"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it"""
    global _config
    _config = None
