"""
Configuration Settings for Meridian

This module loads settings from config.yaml and provides them as a Pydantic settings object.
"""

import os
import yaml
from typing import Dict, List, Optional, Any
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the base directory of the project
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

# Load the configuration file
config_path = os.path.join(BASE_DIR, "config.yaml")
try:
    with open(config_path, "r") as file:
        yaml_config = yaml.safe_load(file) or {}
except FileNotFoundError:
    yaml_config = {}


def _section(*keys: str) -> Dict[str, Any]:
    """Walk nested config.yaml sections, returning {} for anything missing"""
    node: Any = yaml_config
    for key in keys:
        node = node.get(key, {}) if isinstance(node, dict) else {}
    return node if isinstance(node, dict) else {}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Server settings
    host: str = _section("server").get("host", "127.0.0.1")
    port: int = _section("server").get("port", 8000)
    debug: bool = _section("server").get("debug", False)

    # API and security
    api_prefix: str = "/api"
    secret_key: str = _section("security").get("session_secret", "CHANGE_THIS_TO_A_STRONG_SECRET")
    algorithm: str = "HS256"
    session_expire_minutes: int = _section("security").get("session_expire_minutes", 60 * 24 * 7)
    cors_origins: List[str] = ["http://localhost:3000"]

    # Comma-separated Discord snowflake ids; see AdminAllowlist
    admin_discord_ids: str = _section("security").get("admin_discord_ids", "")
    breakglass_admin_ids: List[str] = _section("security").get("breakglass_admin_ids", [])

    # Database settings
    postgres_host: str = _section("database", "postgres").get("host", "localhost")
    postgres_port: int = _section("database", "postgres").get("port", 5432)
    postgres_user: str = _section("database", "postgres").get("username", "postgres")
    postgres_password: str = _section("database", "postgres").get("password", "postgres")
    postgres_db: str = _section("database", "postgres").get("database", "meridian")
    database_url: Optional[str] = None
    sqlalchemy_database_uri: Optional[str] = Field(default=None, validate_default=True)

    # Tradier settings
    tradier_api_base: str = _section("broker", "tradier").get("api_base", "https://api.tradier.com/v1")
    tradier_page_limit: int = _section("broker", "tradier").get("page_limit", 100)
    tradier_max_pages: int = _section("broker", "tradier").get("max_pages", 100)
    tradier_timeout: float = _section("broker", "tradier").get("timeout", 30.0)

    # Logging settings
    log_level: str = _section("logging").get("level", "INFO")
    log_file: str = os.path.join(BASE_DIR, _section("logging").get("file", "logs/meridian.log"))

    @field_validator("sqlalchemy_database_uri", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str):
            return v

        values = info.data
        if values.get("database_url"):
            return values["database_url"]

        user = values.get("postgres_user")
        password = values.get("postgres_password")
        host = values.get("postgres_host")
        port = values.get("postgres_port")
        db = values.get("postgres_db")

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"


settings = Settings()
