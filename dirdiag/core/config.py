from __future__ import annotations

import tomllib
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from dirdiag.core.paths.global_paths import CONFIG_FILE

DEFAULT_EXTERNAL_PROCESS_TIMEOUT = 300.0
DEFAULT_LSP_DIAGNOSTICS_WAIT = 0.3
DEFAULT_IGNORED_DIRECTORIES = ("node_modules", "dist", "build", ".git")


class TomlFileSettingsSource(PydanticBaseSettingsSource):
    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self.toml_data = self._load_toml()

    def _load_toml(self) -> dict[str, Any]:
        file = CONFIG_FILE.path
        try:
            with file.open("rb") as f:
                return tomllib.load(f)
        except FileNotFoundError:
            return {}
        except tomllib.TOMLDecodeError as e:
            raise RuntimeError(f"Invalid TOML in {file}: {e}") from e
        except OSError as e:
            raise RuntimeError(f"Cannot read {file}: {e}") from e

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self.toml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self.toml_data


class LSPServerConfig(BaseModel):
    """User override for a language-server registry entry.

    Entries whose ``name`` matches a built-in server replace it; new names are
    added. ``enabled = false`` removes the server from the registry.
    """

    name: str
    command: str = ""
    args: list[str] = Field(default_factory=list)
    extensions: list[str] = Field(default_factory=list)
    install_hint: str = ""
    enabled: bool = True

    @field_validator("extensions", mode="after")
    @classmethod
    def _normalize_extensions(cls, v: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]


class DiagnosticsConfig(BaseSettings):
    external_process_timeout: float = Field(
        default=DEFAULT_EXTERNAL_PROCESS_TIMEOUT,
        gt=0,
        description="Wall-clock limit in seconds for each external checker run.",
    )
    lsp_diagnostics_wait: float = Field(
        default=DEFAULT_LSP_DIAGNOSTICS_WAIT,
        ge=0,
        description="Seconds to wait after opening a document before reading diagnostics.",
    )
    lsp_diagnostics_retries: int = Field(
        default=0,
        ge=0,
        description=(
            "Extra waits of lsp_diagnostics_wait seconds when a server has not"
            " published anything for a file yet."
        ),
    )
    ignored_directories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_DIRECTORIES),
        description="Directory names never descended into by the LSP fallback.",
    )
    lsp_servers: list[LSPServerConfig] = Field(
        default_factory=list,
        description="Additions to, or overrides of, the built-in language servers.",
    )

    model_config = SettingsConfigDict(
        env_prefix="DIRDIAG_", case_sensitive=False, extra="ignore"
    )

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
            TomlFileSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("ignored_directories", mode="after")
    @classmethod
    def _dedupe_ignored_directories(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(name for name in v if name))

    @classmethod
    def load(cls, **overrides: Any) -> DiagnosticsConfig:
        return cls(**(overrides or {}))
