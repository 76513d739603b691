#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration loading for unitool.

Settings are merged from, in increasing precedence: built-in defaults, a
config file (TOML or JSON), ``UNITOOL_*`` environment variables and CLI
flags. The result is validated once with Pydantic and then passed
explicitly to the parts that need it.
"""

from __future__ import annotations

import json
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.errors import ConfigurationError

DEFAULT_TIMEOUT = 3600.0
DEFAULT_MAX_DIAGNOSTICS = 20

# Looked up in the project directory when no config file is given.
CONFIG_FILE_NAMES = ("unitool.toml", ".unitool.toml", "unitool.json")

ENV_PREFIX = "UNITOOL_"


def default_artifacts_dir() -> Path:
    return Path(tempfile.gettempdir()) / "unitool"


class UnitoolConfig(BaseModel):
    """Validated runtime settings."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    engine_path: Optional[Path] = Field(
        default=None, description="Unity editor binary; discovered when unset"
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Seconds before the editor is killed"
    )
    artifacts_dir: Path = Field(
        default_factory=default_artifacts_dir,
        description="Where the editor log and test results are written",
    )
    max_diagnostics: int = Field(
        default=DEFAULT_MAX_DIAGNOSTICS, ge=1, description="Compiler errors to display"
    )
    extra_args: List[str] = Field(
        default_factory=list, description="Extra arguments passed to the editor"
    )
    color: bool = Field(default=True, description="Colourise terminal output")

    @field_validator("engine_path", "artifacts_dir", mode="before")
    @classmethod
    def expand_user(cls, v: Any) -> Any:
        if isinstance(v, (str, Path)) and str(v):
            return Path(v).expanduser()
        return v

    @property
    def log_path(self) -> Path:
        return self.artifacts_dir / "unitool-editor.log"

    @property
    def results_path(self) -> Path:
        return self.artifacts_dir / "unitool-test-results.xml"


class ConfigLoader:
    """Builds a UnitoolConfig from files, environment and CLI overrides."""

    _SUPPORTED_EXTENSIONS = {".toml": "toml", ".json": "json"}

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self.environ = os.environ if environ is None else environ

    @classmethod
    def load_file(cls, file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Read a TOML or JSON config file.

        A TOML file may keep its settings at the top level or under a
        ``[unitool]`` table.

        Raises:
            ConfigurationError: If the file is missing, unsupported or invalid.
        """
        config_path = Path(file_path).expanduser()

        if not config_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}", config_file=config_path
            )

        format_type = cls._SUPPORTED_EXTENSIONS.get(config_path.suffix.lower())
        if format_type is None:
            supported = ", ".join(cls._SUPPORTED_EXTENSIONS)
            raise ConfigurationError(
                f"Unsupported configuration file format: {config_path.suffix}. "
                f"Supported formats: {supported}",
                config_file=config_path,
            )

        logger.debug(f"Loading {format_type.upper()} configuration from {config_path}")
        try:
            content = config_path.read_text(encoding="utf-8")
            match format_type:
                case "toml":
                    data = tomllib.loads(content)
                    data = data.get("unitool", data)
                case "json":
                    data = json.loads(content)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read configuration file: {e}", config_file=config_path, cause=e
            ) from e
        except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Invalid {format_type.upper()} configuration: {e}",
                config_file=config_path,
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration must be a table/object", config_file=config_path
            )
        return data

    @classmethod
    def discover_file(cls, directory: Path) -> Optional[Path]:
        """Find a config file in ``directory``, if any."""
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                logger.debug(f"Found configuration file: {candidate}")
                return candidate
        return None

    def from_environment(self) -> Dict[str, Any]:
        """Collect settings from ``UNITOOL_*`` environment variables."""
        env = self.environ
        settings: Dict[str, Any] = {}
        if value := env.get(f"{ENV_PREFIX}UNITY_PATH"):
            settings["engine_path"] = value
        if value := env.get(f"{ENV_PREFIX}TIMEOUT"):
            settings["timeout"] = value
        if value := env.get(f"{ENV_PREFIX}ARTIFACTS_DIR"):
            settings["artifacts_dir"] = value
        if value := env.get(f"{ENV_PREFIX}MAX_DIAGNOSTICS"):
            settings["max_diagnostics"] = value
        if env.get("NO_COLOR"):
            settings["color"] = False
        return settings

    def load(
        self,
        *,
        config_file: Optional[Path] = None,
        project_path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> UnitoolConfig:
        """
        Merge every source into a validated configuration.

        Args:
            config_file: Explicit config file; otherwise ``UNITOOL_CONFIG`` or a
                file discovered in ``project_path`` is used.
            project_path: Project directory searched for a config file.
            overrides: CLI values; ``None`` entries are ignored.

        Raises:
            ConfigurationError: If a file cannot be read or a value is invalid.
        """
        merged: Dict[str, Any] = {}

        if config_file is None and (env_file := self.environ.get(f"{ENV_PREFIX}CONFIG")):
            config_file = Path(env_file)
        if config_file is None and project_path is not None:
            config_file = self.discover_file(project_path)
        if config_file is not None:
            merged.update(self.load_file(config_file))
            logger.info(f"Loaded configuration from {config_file}")

        merged.update(self.from_environment())
        merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

        try:
            config = UnitoolConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {_format_validation_error(e)}",
                config_file=config_file,
                cause=e,
            ) from e

        logger.debug(f"Effective configuration: {config.model_dump(mode='json')}")
        return config


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
