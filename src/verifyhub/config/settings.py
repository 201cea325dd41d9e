"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  -- CLI flags passed by Click
  2. Env vars     -- ``VERIFYHUB_*`` prefix, ``__`` for nested keys
  3. TOML file    -- ``verifyhub.toml`` discovered via walk-up
  4. Code defaults -- baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from verifyhub.config.discovery import find_config
from verifyhub.config.models import (
    LocationPricingConfig,
    QuoteConfig,
    RequestsConfig,
    StorageConfig,
)
from verifyhub.domain.pricing import PricingConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``verifyhub.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path handed to settings_customise_sources during construction.
_tls = threading.local()


class VerifySettings(BaseSettings):
    """Settings for the whole verifyhub CLI, frozen after construction.

    Attributes:
        data_dir: Directory holding ``.verifyhub/`` (parent of the config
            file, or CWD when none is found).
        config_path: The TOML file that was loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "VERIFYHUB_",
        "env_nested_delimiter": "__",
    }

    data_dir: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    requests: RequestsConfig = Field(default_factory=RequestsConfig)
    location_pricing: LocationPricingConfig = Field(default_factory=LocationPricingConfig)
    quote: QuoteConfig = Field(default_factory=QuoteConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        data_dir: Path | None = None,
        **cli_flags: Any,
    ) -> VerifySettings:
        """Construct settings for a CLI invocation.

        An explicit *config_path* that does not exist is an error; a
        missing discovered file just means defaults.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
            toml_path = p
        else:
            toml_path = find_config(data_dir)

        resolved_dir = data_dir
        if resolved_dir is None:
            resolved_dir = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(data_dir=resolved_dir, config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None
