# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Layered query configuration: YAML/TOML files, env vars, and typed binding.

Configuration for pysieve lives under the ``pysieve`` root key::

    pysieve:
      query:
        default_page_size: 25
        max_page_size: 200
        default_vector_language: english
        throw_on_invalid_fields: true
      logging:
        format: json
        level:
          root: INFO
          pysieve.data.compiler: DEBUG

Layers merge in order, later layers winning key by key: packaged defaults,
the base file, then one overlay per active profile (``pysieve-dev.yaml``).
``PYSIEVE_*`` environment variables override every layer at lookup time.
"""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__pysieve_config_prefix__"

_ENV_PREFIX = "PYSIEVE_"

_FILE_STEM = "pysieve"

_DEFAULTS_RESOURCE = "pysieve-defaults.yaml"

_EXTENSIONS = (".yaml", ".toml")

_MAX_PLACEHOLDER_DEPTH = 10


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass or Pydantic model as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="pysieve.query")
        class QueryProperties(BaseModel):
            max_page_size: int = Field(default=100, ge=1)
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


def env_key(key: str) -> str:
    """``pysieve.query.max_page_size`` -> ``PYSIEVE_QUERY_MAX_PAGE_SIZE``."""
    base = key.removeprefix(f"{_FILE_STEM}.")
    return _ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*; override values win."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def read_file(path: Path) -> dict[str, Any]:
    """Parse a YAML or TOML configuration file (by suffix)."""
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f) or {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def packaged_defaults() -> dict[str, Any]:
    """The defaults shipped in ``pysieve.resources``."""
    resource = importlib.resources.files("pysieve.resources").joinpath(_DEFAULTS_RESOURCE)
    with importlib.resources.as_file(resource) as p, open(p) as f:
        return yaml.safe_load(f) or {}


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (PYSIEVE_SECTION_KEY format)
    2. Profile overlay files, then the base file
    3. Packaged defaults (``pysieve/resources/pysieve-defaults.yaml``)
    """

    def __init__(self, data: dict[str, Any] | None = None, sources: Iterable[str] = ()) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = list(sources)

    @property
    def loaded_sources(self) -> list[str]:
        """Config sources that were merged, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def defaults(cls) -> Config:
        """Configuration holding only the packaged defaults."""
        return cls._layered([], load_defaults=True)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load configuration from a YAML or TOML file plus profile overlays.

        For ``config/pysieve.yaml`` and profile ``dev`` the overlay is
        ``config/pysieve-dev.yaml``. Missing files are skipped.
        """
        path = Path(path)
        layers: list[tuple[Path, str | None]] = [(path, None)]
        for profile in active_profiles or []:
            layers.append((path.parent / f"{path.stem}-{profile}{path.suffix}", profile))
        return cls._layered(layers, load_defaults)

    @classmethod
    def from_directory(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load ``pysieve.yaml`` / ``pysieve.toml`` from *base_dir* and its ``config/`` subdirectory.

        Merge order (later wins): ``config/pysieve.*``, ``pysieve.*``, then
        profile overlays from both locations.
        """
        base_dir = Path(base_dir)
        search_dirs = (base_dir / "config", base_dir)
        layers: list[tuple[Path, str | None]] = []
        for profile in [None, *(active_profiles or [])]:
            stem = _FILE_STEM if profile is None else f"{_FILE_STEM}-{profile}"
            layers.extend((d / f"{stem}{ext}", profile) for d in search_dirs for ext in _EXTENSIONS)
        return cls._layered(layers, load_defaults)

    @classmethod
    def _layered(cls, layers: list[tuple[Path, str | None]], load_defaults: bool) -> Config:
        data: dict[str, Any] = {}
        sources: list[str] = []
        if load_defaults:
            data = packaged_defaults()
            sources.append(f"{_DEFAULTS_RESOURCE} (defaults)")
        for path, profile in layers:
            if not path.is_file():
                continue
            data = deep_merge(data, read_file(path))
            sources.append(str(path) if profile is None else f"{path} (profile: {profile})")
        return cls(data, sources)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values containing ``${...}`` placeholders are resolved:
        - ``${ENV_VAR}`` — resolved from environment variables
        - ``${config.key}`` — resolved from other config values
        - ``${key:default}`` — uses default if key/env not found
        """
        env_val = os.environ.get(env_key(key))
        if env_val is not None:
            return env_val
        value = self._lookup(key)
        if value is None:
            return default
        if isinstance(value, str) and "${" in value:
            return self._resolve_placeholders(value)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get all values under a prefix as a dict."""
        section = self._lookup(prefix)
        return section if isinstance(section, dict) else {}

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    def _resolve_placeholders(self, value: str, depth: int = 0) -> str:
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references."
            )

        def replace(match: re.Match[str]) -> str:
            inner = match.group(1)
            ref, _, fallback = inner.partition(":")
            env_val = os.environ.get(ref)
            if env_val is not None:
                return env_val
            found = self._lookup(ref)
            if found is not None:
                text = str(found)
                return self._resolve_placeholders(text, depth + 1) if "${" in text else text
            if ":" in inner:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{inner}}}': not found in environment or config")

        return _PLACEHOLDER_RE.sub(replace, value)

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(self, config_cls: type[T]) -> T:
        """Bind configuration to a @config_properties dataclass or Pydantic model.

        Environment overrides apply per field: ``PYSIEVE_QUERY_MAX_PAGE_SIZE``
        replaces ``max_page_size`` when binding the ``pysieve.query`` prefix.

        Raises:
            ValueError: If *config_cls* is not decorated or fails validation.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = self._bindable_section(prefix, _field_names(config_cls))
        if issubclass(config_cls, BaseModel):
            try:
                return config_cls.model_validate(section)  # type: ignore[return-value]
            except ValidationError as exc:
                raise ValueError(
                    f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
                ) from exc

        hints = get_type_hints(config_cls)
        kwargs = {
            f.name: _coerce_scalar(section[f.name], hints.get(f.name))
            for f in dataclasses.fields(config_cls)  # type: ignore[arg-type]
            if f.name in section
        }
        return config_cls(**kwargs)

    def _bindable_section(self, prefix: str, names: Iterable[str]) -> dict[str, Any]:
        section = dict(self.get_section(prefix))
        for name in names:
            env_val = os.environ.get(env_key(f"{prefix}.{name}"))
            if env_val is not None:
                section[name] = env_val
        return section


def _field_names(config_cls: type) -> list[str]:
    model_fields = getattr(config_cls, "model_fields", None)
    if model_fields is not None:
        return list(model_fields)
    if dataclasses.is_dataclass(config_cls):
        return [f.name for f in dataclasses.fields(config_cls)]
    return []


def _coerce_scalar(value: Any, expected: Any) -> Any:
    # Env vars and quoted YAML arrive as text.
    if not isinstance(value, str):
        return value
    if expected is bool:
        return value.lower() in ("true", "1", "yes")
    if expected is int:
        return int(value)
    if expected is float:
        return float(value)
    return value
