"""
Settings for wheretowatch, read from the environment and a .env file.

Settings are loaded once by the CLI and handed to each client; nothing reads
them from module scope.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Annotated

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode

from wheretowatch.errors import ConfigurationError


class TableMode(str, Enum):
    ALL = "all"                    # combined table, every matched show
    STREAMABLE = "streamable"      # combined table, only shows on at least one provider
    PER_PROVIDER = "per-provider"  # one table per provider


class MetadataSourceName(str, Enum):
    TVMAZE = "tvmaze"
    TMDB = "tmdb"


class Settings(BaseSettings):
    # Plex
    plex_url: str = "http://localhost:32400"
    plex_token: str = ""
    plex_library: str = "TV Shows"  # Section key ("2") or title

    # JustWatch
    justwatch_country: str = "US"
    justwatch_language: str = "en"
    providers: Annotated[list[str], NoDecode] = []  # Clear names, e.g. ["Netflix", "Hulu"]

    # Metadata ("Ended" status)
    metadata_source: MetadataSourceName = MetadataSourceName.TVMAZE
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"

    # Output
    table_mode: TableMode = TableMode.ALL
    ended_label: str = "Ended"

    request_timeout: float = 10.0

    class Config:
        env_file = ".env"

    @field_validator("providers", mode="before")
    @classmethod
    def split_providers(cls, value):
        """Accept a JSON list or a comma separated string."""
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                value = json.loads(value)
            else:
                value = value.split(",")
        return [name.strip() for name in value if name and name.strip()]

    @field_validator("plex_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any of the named settings is empty."""
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            env_names = ", ".join(name.upper() for name in missing)
            raise ConfigurationError(f"Missing required settings: {env_names}")


def load_settings(env_file: str | None = None, **overrides) -> Settings:
    """Build Settings, turning validation errors into ConfigurationError."""
    try:
        if env_file is not None:
            return Settings(_env_file=env_file, **overrides)
        return Settings(**overrides)
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
