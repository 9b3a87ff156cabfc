"""Emitter and validator configuration."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

EMITTER_PACKAGE = "@asyncapi/emitter"
CONFIG_FILENAMES = ("asyncapi-emitter.toml", "tspconfig.yaml", "tspconfig.json")


class ServerOption(BaseModel):
    """A server declared in configuration rather than through annotations."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str
    url: str
    protocol: str
    description: Optional[str] = None
    bindings: Dict[str, Any] = Field(default_factory=dict)


class EmitterOptions(BaseModel):
    """
    Options accepted by :func:`asyncapi_emitter.emit`.

    Keys use the kebab-case spelling of the host compiler's config file
    (``output-file``, ``file-type``...); snake_case attribute names are
    accepted as well.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    output_file: str = Field("asyncapi", alias="output-file")
    file_type: Literal["yaml", "json"] = Field("yaml", alias="file-type")
    asyncapi_version: str = Field("3.0.0", alias="asyncapi-version")
    include_source_info: bool = Field(False, alias="include-source-info")
    default_servers: List[ServerOption] = Field(default_factory=list, alias="default-servers")
    validate_spec: bool = Field(False, alias="validate-spec")
    additional_properties: Dict[str, Any] = Field(default_factory=dict, alias="additional-properties")
    security_schemes: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="security-schemes")
    omit_unreachable_types: bool = Field(False, alias="omit-unreachable-types")
    title: Optional[str] = None
    strict: bool = False

    @field_validator("file_type", mode="before")
    @classmethod
    def _normalize_file_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.lower()
            return "yaml" if value == "yml" else value
        return value

    @field_validator("output_file")
    @classmethod
    def _non_empty_output(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("output-file must not be empty")
        return value

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "EmitterOptions":
        """Validate raw options, raising :class:`ConfigurationError` on failure."""

        try:
            return cls.model_validate(data or {})
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()
            )
            raise ConfigurationError(
                f"Invalid emitter options: {problems}",
                hint="Check the option names against the emitter documentation.",
            ) from exc


@dataclass
class ValidatorOptions:
    """Behaviour switches for :class:`DocumentValidator`."""

    strict_mode: bool = False
    enable_cache: bool = True
    batch_concurrency: int = 4
    max_cache_entries: int = 256

    def __post_init__(self) -> None:
        if self.batch_concurrency < 1:
            raise ConfigurationError(
                f"batch_concurrency must be at least 1, got {self.batch_concurrency}"
            )
        if self.max_cache_entries < 1:
            raise ConfigurationError(
                f"max_cache_entries must be at least 1, got {self.max_cache_entries}"
            )


def locate_config_file(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    """Return the config file to use, or ``None`` when no candidate exists."""

    if explicit is not None:
        path = explicit if explicit.is_absolute() else root / explicit
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}", path=str(path))
        return path
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.exists():
            return candidate
    return None


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        if path.suffix == ".toml":
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        elif path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        elif path.suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        else:
            raise ConfigurationError(f"Unsupported config file type '{path.suffix}'", path=str(path))
    except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Failed to read config file: {exc}", path=str(path)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a mapping at the top level", path=str(path))
    return data


def _emitter_section(data: Dict[str, Any]) -> Dict[str, Any]:
    options = data.get("options")
    if isinstance(options, dict) and isinstance(options.get(EMITTER_PACKAGE), dict):
        return options[EMITTER_PACKAGE]
    if isinstance(data.get("asyncapi"), dict):
        return data["asyncapi"]
    return {k: v for k, v in data.items() if k not in ("emit", "options", "linter")}


def load_emitter_options(path: Path) -> EmitterOptions:
    """Load :class:`EmitterOptions` from a TOML, YAML or JSON file."""

    try:
        return EmitterOptions.from_mapping(_emitter_section(_read_config(path)))
    except ConfigurationError as exc:
        if exc.path is None:
            exc.path = str(path)
        raise


__all__ = [
    "CONFIG_FILENAMES",
    "EMITTER_PACKAGE",
    "EmitterOptions",
    "ServerOption",
    "ValidatorOptions",
    "load_emitter_options",
    "locate_config_file",
]
