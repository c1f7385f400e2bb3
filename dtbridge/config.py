"""Configuration system for dtbridge using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.dtbridge] section (project-level)
3. ./dtbridge.toml (project-level, explicit)
4. ~/.config/dtbridge/config.toml (user-level, overrides project)
5. DTBRIDGE_CONFIG_FILE (explicit file)
6. Environment variables (highest priority)

Environment variables use DTBRIDGE_ prefix with nested delimiter __.
Example: DTBRIDGE_GRID__COLUMN_SEARCH=false, DTBRIDGE_URL__BASE_URL
"""

from __future__ import annotations

import json
import logging
import os
import sys

from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Literal

from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


#: Page sizes offered by the grid when ``lengthMenu`` is not configured.
DEFAULT_LENGTH_MENU: list[int] = [5, 10, 25, 50, 100]


def _user_config_path() -> Path:
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "~")).expanduser() / "dtbridge" / "config.toml"
    return Path("~/.config/dtbridge/config.toml").expanduser()


def _find_config_files() -> list[Path]:
    """Existing configuration files, lowest precedence first."""
    candidates = [Path("pyproject.toml"), Path("dtbridge.toml"), _user_config_path()]
    explicit = os.environ.get("DTBRIDGE_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit))
    return [path for path in candidates if path.is_file()]


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        try:
            data = tomllib.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            # The dtbridge log helpers read settings themselves, so use the raw logger.
            logging.getLogger("dtbridge").warning(
                "Ignoring unreadable config file %s: %s", config_file, exc
            )
            continue

        if config_file.name == "pyproject.toml":
            data = data.get("tool", {}).get("dtbridge", {})

        merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class TomlSectionSource(PydanticBaseSettingsSource):
    """One ``[section]`` of the merged TOML files as a settings source."""

    def __init__(self, settings_cls: type[BaseSettings], section: str) -> None:
        super().__init__(settings_cls)
        data = _load_toml_config().get(section)
        self.data: dict[str, Any] = data if isinstance(data, dict) else {}

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self.data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {
            name: value for name, value in self.data.items() if name in self.settings_cls.model_fields
        }


class SectionSettings(BaseSettings):
    """Base for one configuration section.

    Source priority, highest first: init kwargs, ``DTBRIDGE_<SECTION>__*``
    environment variables, the TOML ``[section]`` table, defaults.
    """

    toml_section: ClassVar[str] = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSectionSource(settings_cls, cls.toml_section),
            dotenv_settings,
            file_secret_settings,
        )


class GridSettings(SectionSettings):
    """Default DataTables.js options used by the script builder.

    Environment prefix: DTBRIDGE_GRID__
    Example: DTBRIDGE_GRID__LENGTH_MENU="[10, 20]"
    """

    toml_section: ClassVar[str] = "grid"

    model_config = SettingsConfigDict(
        env_prefix="DTBRIDGE_GRID__",
        extra="ignore",
    )

    processing: bool = True
    server_side: bool = True
    language: dict[str, Any] = Field(default_factory=dict)
    length_menu: list[Any] = Field(default_factory=lambda: list(DEFAULT_LENGTH_MENU))
    column_search: bool = True
    search: bool = True
    external_search_input_id: str | None = None
    extra_fields: list[dict[str, Any]] = Field(default_factory=list)
    draw_callback: str | None = None
    on_complete_callback: str | None = None

    @field_validator("length_menu", mode="before")
    @classmethod
    def _default_length_menu(cls, v: Any) -> Any:
        """Fall back to the default page sizes when unset or empty."""
        if v is None or v == []:
            return list(DEFAULT_LENGTH_MENU)
        return v


class PaginatorSettings(SectionSettings):
    """Request translation settings.

    Environment prefix: DTBRIDGE_PAGINATOR__
    Example: DTBRIDGE_PAGINATOR__FILTER_ORDER='{"full_name": ["first", "last"]}'
    """

    toml_section: ClassVar[str] = "paginator"

    model_config = SettingsConfigDict(
        env_prefix="DTBRIDGE_PAGINATOR__",
        extra="ignore",
    )

    # logical column -> physical sort keys
    filter_order: dict[str, list[str]] = Field(default_factory=dict)
    # 0 = no cap
    max_limit: int = Field(default=0, ge=0)


class UrlSettings(SectionSettings):
    """Default URL builder settings.

    Environment prefix: DTBRIDGE_URL__
    Example: DTBRIDGE_URL__BASE_URL=https://app.example.com
    """

    toml_section: ClassVar[str] = "url"

    model_config = SettingsConfigDict(
        env_prefix="DTBRIDGE_URL__",
        extra="ignore",
    )

    base_url: str = "http://localhost"
    extension: str = "json"

    @field_validator("base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LogSettings(SectionSettings):
    """Logging settings.

    Environment prefix: DTBRIDGE_LOG__
    Example: DTBRIDGE_LOG__LEVEL=DEBUG
    """

    toml_section: ClassVar[str] = "log"

    model_config = SettingsConfigDict(
        env_prefix="DTBRIDGE_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


_SECTIONS: list[tuple[str, str]] = [
    ("GRID", "grid"),
    ("PAGINATOR", "paginator"),
    ("URL", "url"),
    ("LOG", "log"),
]

_SECTION_MODELS: dict[str, type[SectionSettings]] = {
    "grid": GridSettings,
    "paginator": PaginatorSettings,
    "url": UrlSettings,
    "log": LogSettings,
}


def _toml_value(value: Any) -> str:
    """Format a single value for TOML output."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{json.dumps(k)} = {_toml_value(v)}" for k, v in value.items()) + "}"
    return json.dumps(str(value))


class DTBridgeSettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: DTBRIDGE__
    """

    model_config = SettingsConfigDict(
        env_prefix="DTBRIDGE__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    grid: GridSettings = Field(default_factory=GridSettings)
    paginator: PaginatorSettings = Field(default_factory=PaginatorSettings)
    url: UrlSettings = Field(default_factory=UrlSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    def __init__(self, **data: Any) -> None:
        # section dicts go through the section sources so env and TOML still fill the gaps
        for attr_name, section_cls in _SECTION_MODELS.items():
            if isinstance(data.get(attr_name), dict):
                data[attr_name] = section_cls(**data[attr_name])
        super().__init__(**data)

    def to_toml(self) -> str:
        """Export settings as TOML string."""
        lines = ["# dtbridge Configuration", "# Generated by: dtbridge config --toml", ""]

        all_data = self.model_dump()
        for _, section_name in _SECTIONS:
            lines.append(f"[{section_name}]")
            for field_name, field_value in all_data[section_name].items():
                if field_value is None:
                    continue
                lines.append(f"{field_name} = {_toml_value(field_value)}")
            lines.append("")

        return "\n".join(lines)

    def to_env(self) -> str:
        """Export settings as shell environment variables."""
        lines = [
            "# dtbridge Environment Variables",
            "# Generated by: dtbridge config --env",
            "",
        ]

        all_data = self.model_dump()
        for env_prefix, attr_name in _SECTIONS:
            for field_name, field_value in all_data[attr_name].items():
                if field_value is None:
                    continue
                env_name = f"DTBRIDGE_{env_prefix}__{field_name.upper()}"
                if isinstance(field_value, bool):
                    value_str = "true" if field_value else "false"
                elif isinstance(field_value, (list, dict)):
                    value_str = json.dumps(field_value)
                else:
                    value_str = str(field_value)
                lines.append(f"export {env_name}='{value_str}'")

        return "\n".join(lines)

    def show(self) -> str:
        """Format settings as a readable table."""
        lines = ["dtbridge Configuration", "=" * 60]

        for _, attr_name in _SECTIONS:
            lines.append(f"\n[{attr_name}]")
            for field_name, field_value in getattr(self, attr_name).model_dump().items():
                value_str = str(field_value)
                if len(value_str) > 50:
                    value_str = value_str[:47] + "..."
                lines.append(f"  {field_name:26} = {value_str}")

        return "\n".join(lines)


@lru_cache(maxsize=1)
def get_settings() -> DTBridgeSettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.
    """
    return DTBridgeSettings()


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> DTBridgeSettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()
