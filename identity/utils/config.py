"""
Configuration management with schema validation.
Single source of truth for identity core settings.
"""

import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaError

from .exceptions import ConfigError

# Load environment variables
load_dotenv()

DATA_DIR = Path(os.getenv("IDENTITY_DATA_DIR", "data"))
SETTINGS_FILE = DATA_DIR / "settings.yaml"


class AppSettings(BaseModel):
    name: str = "Branch Identity"
    version: str = "1.0.0"
    environment: str = "development"


class AuthSettings(BaseModel):
    session_ttl_seconds: int = Field(default=3600, gt=0)
    handshake_ttl_seconds: int = Field(default=60, gt=0)
    min_password_length: int = Field(default=6, ge=1)
    password_scheme: Literal["plain", "bcrypt"] = "plain"
    session_cookie_name: str = "session_token"


class StoreSettings(BaseModel):
    data_dir: str = "data"
    employees_table: str = "Employees"
    lock_timeout_seconds: float = Field(default=30, gt=0)

    @property
    def tables_dir(self) -> Path:
        return Path(self.data_dir) / "tables"

    @property
    def locks_dir(self) -> Path:
        return Path(self.data_dir) / "locks"


class IdSettings(BaseModel):
    placeholder_partition: str = "XXX"
    date_format: str = "%d%m%y"
    sequence_width: int = Field(default=3, ge=1)
    employee_prefix: str = "emp"
    timezone: Optional[str] = None  # IANA name; aware datetimes are converted before formatting


class HousekeepingSettings(BaseModel):
    enabled: bool = True
    cache_clear_interval_minutes: int = Field(default=60, gt=0)


class PeerSettings(BaseModel):
    contract_app_url: Optional[str] = None
    timeout_seconds: float = 15


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "json"
    file_path: Optional[str] = "logs/identity.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    ids: IdSettings = Field(default_factory=IdSettings)
    housekeeping: HousekeepingSettings = Field(default_factory=HousekeepingSettings)
    peer: PeerSettings = Field(default_factory=PeerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ConfigManager:
    """Loads settings.yaml once and caches the validated result"""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
        self._settings: Optional[Settings] = None

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute ${VAR} and ${VAR:default} references"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                else:
                    return os.getenv(var_expr, value)
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def load_settings(self) -> Settings:
        """Load and validate settings.yaml; defaults apply when the file is absent"""
        if not self.settings_path.exists():
            self._settings = Settings(store=StoreSettings(data_dir=str(DATA_DIR)))
            return self._settings

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.settings_path}: {e}")

        if not isinstance(raw_data, dict):
            raise ConfigError(f"Settings file {self.settings_path} must contain a mapping")

        processed_data = self._substitute_env_vars(raw_data)
        try:
            self._settings = Settings(**processed_data)
        except SchemaError as e:
            raise ConfigError(f"Invalid settings in {self.settings_path}: {e}")
        return self._settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings


# Global instance
config_manager = ConfigManager()
