"""Configuration model used by the library store.

StoreConfig

`working_dir` (`Path`)
: Directory holding the library files. Created on first use when missing.
  Defaults to `$BIBSMITH_HOME` or `~/.bibsmith/libraries`.

`extension` (`str`)
: File suffix identifying libraries inside the working directory. Names passed
  without the suffix get it appended.

`encoding` (`str`)
: Text encoding used to read and write library files.

`make_backup` (`bool`)
: Keep a copy of the previous file as `<library>.bib.bak` on every write.

`update_strategy` (`"two-step" | "in-place"`)
: How entry updates are persisted. `two-step` deletes the old entry and inserts
  the new one with two independent writes; a crash between them loses the old
  entry. `in-place` replaces the entry within a single write.

Configuration files are YAML mappings, either flat or nested under a
`bibsmith:` key:

```yaml
bibsmith:
  working_dir: ~/papers
  make_backup: true
```
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from .exceptions import ConfigError
from .paths import DEFAULT_EXTENSION


ENV_HOME = "BIBSMITH_HOME"
CONFIG_SECTION = "bibsmith"

UpdateStrategy = Literal["two-step", "in-place"]


def resolve_working_dir(explicit: str | Path | None = None) -> Path:
    """Return the working directory from an explicit value, the environment or the default."""
    if explicit is not None:
        return Path(explicit).expanduser()
    env_root = os.environ.get(ENV_HOME)
    if env_root:
        return Path(env_root).expanduser()
    return Path.home() / ".bibsmith" / "libraries"


class StoreConfig(BaseModel):
    """Settings shared by every library of a working directory."""

    model_config = ConfigDict(extra="forbid")

    working_dir: Path = Field(default_factory=lambda: resolve_working_dir())
    extension: str = DEFAULT_EXTENSION
    encoding: str = "utf-8"
    make_backup: bool = False
    update_strategy: UpdateStrategy = "two-step"

    @field_validator("working_dir", mode="after")
    @classmethod
    def expand_working_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("extension")
    @classmethod
    def check_extension(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2 or not value.startswith("."):
            raise ValueError("extension must start with '.' and name a suffix")
        return value


def load_config(
    path: str | Path | None = None,
    **overrides: Any,
) -> StoreConfig:
    """Build a configuration from an optional YAML file plus keyword overrides.

    Overrides set to ``None`` are ignored so CLI options can be forwarded as-is.
    """
    data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path).expanduser()
        try:
            raw_text = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Unable to read configuration '{config_path}': {exc}") from exc
        try:
            payload = yaml.safe_load(raw_text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in '{config_path}': {exc}") from exc
        if not isinstance(payload, Mapping):
            raise ConfigError(f"Configuration '{config_path}' must contain a mapping.")
        section = payload.get(CONFIG_SECTION, payload)
        if not isinstance(section, Mapping):
            raise ConfigError(f"'{CONFIG_SECTION}' in '{config_path}' must be a mapping.")
        data.update(section)

    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return StoreConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid store configuration: {exc}") from exc


__all__ = [
    "CONFIG_SECTION",
    "ENV_HOME",
    "StoreConfig",
    "UpdateStrategy",
    "load_config",
    "resolve_working_dir",
]
