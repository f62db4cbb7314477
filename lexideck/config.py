"""
Runtime settings for lexideck, loaded from environment variables or a .env
file. Every field can be overridden with a LEXIDECK_-prefixed variable.
"""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DECK_STORAGE_PREFIX


def get_default_db_path() -> Path:
    """Returns the default path for the deck database file."""
    return Path.home() / ".lexideck" / "decks.duckdb"


class Settings(BaseSettings):
    """
    Defines application settings, loaded from environment variables or .env files.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEXIDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Storage ---
    db_path: Path = get_default_db_path()
    storage_prefix: str = DECK_STORAGE_PREFIX

    # --- Logging ---
    log_level: str = "WARNING"

    # --- Remote collaborators ---
    dictionary_api_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    translation_api_url: str = "https://api.mymemory.translated.net/get"
    lookup_timeout_seconds: float = 8.0


def get_settings() -> Settings:
    """Build a Settings instance from the current environment."""
    return Settings()
