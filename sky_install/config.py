"""Optional JSON configuration (``$SCAII_HOME/sky-install.json``).

Example::

    {
      "default_branch": "develop",
      "timeout": 120,
      "libraries": {
        "protobuf-js": {"url": "https://mirror.example/protobuf-js-3.5.1.zip"}
      }
    }
"""

from __future__ import annotations

import json
from pathlib import Path

from jsonschema import ValidationError

from sky_install import constants
from sky_install.errors import ConfigError
from sky_install.types import InstallConfig
from sky_install.validator import validate_config


def default_config_path() -> Path:
    return constants.SCAII_HOME / constants.CONFIG_FILENAME


def load_config(path: Path | None = None) -> InstallConfig:
    """Load and validate the config at *path*.

    Without *path* the default location is used, and a missing file yields
    the defaults. An explicitly given path must exist.
    """
    explicit = path is not None
    path = path if explicit else default_config_path()
    if not path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {path}")
        return InstallConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e

    try:
        validate_config(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config {path}: {e.message}") from e
    return InstallConfig.model_validate(data)
