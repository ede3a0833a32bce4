"""
Configuration Management

Centralized configuration using Pydantic Settings.

Environment variables (prefix STILLFACE_, also read from .env):
- STILLFACE_DB_MODE: sqlite | mysql | postgres (default: sqlite)
- STILLFACE_DATABASE: SQLite file path or server database name
- STILLFACE_HOST / STILLFACE_PORT / STILLFACE_USER / STILLFACE_PASSWORD
- STILLFACE_CONNECT_TIMEOUT: Connect timeout in seconds (default: 10)
- STILLFACE_MODEL_CACHE: Serve coded data from the in-memory cache (default: true)
- STILLFACE_LOG_LEVEL: Root log level (default: INFO)
"""

import logging
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stillface.shared.exceptions import ConfigurationError
from stillface.shared.types import DatabaseMode

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Settings(BaseSettings):
    """Application settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="STILLFACE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Application
    app_name: str = "StillFace"
    log_level: str = "INFO"
    
    # Database
    db_mode: DatabaseMode = DatabaseMode.SQLITE
    database: str = "stillface.db"
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    connect_timeout: int = Field(default=10, ge=1)
    create_if_missing: bool = True
    
    # Cache
    model_cache: bool = True
    
    @field_validator("db_mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> DatabaseMode:
        return DatabaseMode.parse(value)
    
    def adapter_config(self) -> Dict[str, Any]:
        """
        Build the adapter config dict for the selected mode.
        
        Raises:
            ConfigurationError: If a server mode is missing host/user/password
        """
        if self.db_mode == DatabaseMode.SQLITE:
            return {
                "database": self.database,
                "create": self.create_if_missing,
                "timeout": float(self.connect_timeout),
            }
        
        required = {"host": self.host, "user": self.user, "password": self.password}
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ConfigurationError(
                f"Missing required config for {self.db_mode.value}: {', '.join(missing)}",
                details={"mode": self.db_mode.value, "missing": missing},
                suggestion="Set " + ", ".join(f"STILLFACE_{k.upper()}" for k in missing),
            )
        
        config: Dict[str, Any] = {
            "host": self.host,
            "database": self.database,
            "user": self.user,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
        }
        if self.port is not None:
            config["port"] = self.port
        return config


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create settings."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_logging(level: Optional[str] = None) -> None:
    """Install the application log format on the root logger."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
