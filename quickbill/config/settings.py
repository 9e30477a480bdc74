"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
Backend connection parameters are optional: when they are missing the
backend refuses to initialize and the app runs on the offline store.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BackendKind = Literal["relational", "firebase", "kv", "offline"]


class StorageSettings(BaseSettings):
    """Storage selection and offline store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: BackendKind = "relational"
    data_dir: Path = Path("data")
    offline_db_name: str = "offline.db"
    offline_key: str = "savedBills"

    # SQLite settings
    pool_size: int = 2
    busy_timeout: int = 30000  # ms

    @property
    def offline_db_path(self) -> Path:
        return self.data_dir / self.offline_db_name


class RelationalSettings(BaseSettings):
    """Relational backend configuration."""

    model_config = SettingsConfigDict(env_prefix="RELATIONAL_")

    db_path: Path | None = None

    @field_validator("db_path", mode="before")
    @classmethod
    def blank_path_is_unset(cls, v: Any) -> Any:
        """Treat RELATIONAL_DB_PATH="" as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class FirebaseSettings(BaseSettings):
    """Document-store (realtime database REST) configuration."""

    model_config = SettingsConfigDict(env_prefix="FIREBASE_")

    database_url: str | None = None
    auth_token: str | None = None
    bills_path: str = "bills"


class KVSettings(BaseSettings):
    """Key-value (Redis REST) backend configuration."""

    model_config = SettingsConfigDict(env_prefix="KV_")

    rest_api_url: str | None = None
    rest_api_token: str | None = None
    key_prefix: str = "bill:"
    index_key: str = "all-bills"


class HTTPSettings(BaseSettings):
    """Shared settings for REST backends."""

    model_config = SettingsConfigDict(env_prefix="HTTP_")

    timeout: float = 10.0

    # Retry settings
    max_retries: int = 3
    retry_delay: float = 0.5
    retry_multiplier: float = 2.0


class ShopSettings(BaseSettings):
    """Shop details printed on the bill header."""

    model_config = SettingsConfigDict(env_prefix="SHOP_")

    name: str = "Baba Flower Mart"
    address_lines: list[str] = [
        "S No 4 Guddi Malkapur Hyderabad Telangana",
        "5-2-22/A/38/36 New Osmangunj Hyderabad Telangana",
    ]
    phone: str = "9849078633"
    min_item_rows: int = 8


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "QuickBill"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    relational: RelationalSettings = Field(default_factory=RelationalSettings)
    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)
    kv: KVSettings = Field(default_factory=KVSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)
    shop: ShopSettings = Field(default_factory=ShopSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
