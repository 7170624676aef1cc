"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (MODDOC__CACHE__MAX_BYTES=50000000)
  2. moddoc.yaml            (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


def _find_config_file() -> str | None:
    """Return the path of the first moddoc.yaml found, or None."""
    candidates = [
        Path("moddoc.yaml"),
        Path(platformdirs.user_config_dir("moddoc")) / "moddoc.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class CacheSettings(BaseModel):
    # Upper bound on the summed size of fetched module sources kept in memory
    max_bytes: int = Field(default=25_000_000, ge=0)


class GraphCacheSettings(BaseModel):
    # 0 disables the bound; graphs then live until the process restarts
    max_entries: int = Field(default=128, ge=0)


class FetcherSettings(BaseModel):
    timeout_seconds: float = 30.0
    max_redirects: int = Field(default=10, ge=0)
    user_agent: str = "moddoc/1.0"
    max_connections: int = 10
    max_keepalive_connections: int = 5
    block_private_networks: bool = True


class ExtractorSettings(BaseModel):
    # The bridge script path and the root specifier are appended to this command
    command: list[str] = [
        "deno",
        "run",
        "--quiet",
        "--no-prompt",
        "--allow-read",
        "--allow-net=jsr.io",
    ]
    # Documents deno//<library>; the library's extra arguments and "--json" are appended
    builtin_command: list[str] = ["deno", "doc"]
    builtin_libraries: dict[str, list[str]] = {"stable": []}
    # Upper bound on one line exchanged with the bridge (the final node list)
    max_message_bytes: int = Field(default=64 * 1024 * 1024, gt=0)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: MODDOC__SERVER__PORT=9090
        env_prefix="MODDOC__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    cache: CacheSettings = CacheSettings()
    graph_cache: GraphCacheSettings = GraphCacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    extractor: ExtractorSettings = ExtractorSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
