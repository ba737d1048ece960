"""Configuration management for Bazar Buddy."""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings
import yaml

# Interface languages: English and Bengali
LANGUAGES = ("en", "bn")


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///./data/bazar_buddy.db"


class AuthConfig(BaseModel):
    token_ttl_hours: int = 24 * 7
    reset_token_ttl_minutes: int = 30
    purge_interval_hours: int = 6
    min_password_length: int = 6


class PricingConfig(BaseModel):
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4.1-mini"
    timeout: float = 20.0


class OCRConfig(BaseModel):
    google_vision_api_key: str = ""
    ocr_space_api_key: str = ""
    timeout: float = 30.0


class ClientConfig(BaseModel):
    api_base_url: str = "http://127.0.0.1:8000"
    session_file: str = "~/.bazar_buddy/session.json"
    timeout: float = 15.0


class NotificationConfig(BaseModel):
    enabled: bool = False
    email_smtp_server: str = "smtp.gmail.com"
    email_smtp_port: int = 587
    email_username: str = ""
    email_password: str = ""


class Settings(BaseSettings):
    """Application settings loaded from config.yaml and environment."""

    app_name: str = "Bazar Buddy"
    app_version: str = "0.1.0"
    debug: bool = False
    currency: str = "BDT"
    log_level: str = "INFO"
    language: str = "en"

    database: DatabaseConfig = DatabaseConfig()
    auth: AuthConfig = AuthConfig()
    pricing: PricingConfig = PricingConfig()
    ocr: OCRConfig = OCRConfig()
    client: ClientConfig = ClientConfig()
    notifications: NotificationConfig = NotificationConfig()

    class Config:
        env_prefix = "GROCERY_"
        env_file = ".env"
        env_nested_delimiter = "__"

    @field_validator("language")
    @classmethod
    def known_language(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in LANGUAGES:
            raise ValueError(f"language must be one of {', '.join(LANGUAGES)}")
        return value


def load_config(config_path: Optional[Path] = None) -> Settings:
    """Load configuration from YAML file, letting the environment fill the gaps."""
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config.yaml"

    config_data = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    # Flatten the app section; only keys present in the file are passed so
    # environment variables still apply to everything else.
    app_section = config_data.get("app", {})
    settings_data = {
        key: app_section[src]
        for key, src in (
            ("app_name", "name"),
            ("app_version", "version"),
            ("debug", "debug"),
            ("currency", "currency"),
            ("log_level", "log_level"),
            ("language", "language"),
        )
        if src in app_section
    }
    for section in ("database", "auth", "pricing", "ocr", "client", "notifications"):
        if config_data.get(section):
            settings_data[section] = config_data[section]

    return Settings(**settings_data)


# Global settings instance
settings = load_config()
