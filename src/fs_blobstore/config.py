"""Store configuration loading."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from .constants import CONFIG_FILE, ENV_BASE_PATH, ENV_FSYNC
from .errors import ConfigError

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


class StoreSettings(BaseModel):
    """
    Settings for building a blob store.

    Only the ``fs`` provider exists today; the field is kept so configuration
    files stay explicit about where blobs live.
    """
    provider: str = "fs"            # "fs"
    base_path: str = ""             # Directory holding the blob files
    fsync: bool = True              # Fsync data and directory on commit

    @field_validator("provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("base_path")
    @classmethod
    def expand_base_path(cls, v: str) -> str:
        return os.path.expanduser(v.strip()) if v else ""


def _env_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false), got {raw!r}")


def load_settings(path: Optional[Union[str, Path]] = None) -> StoreSettings:
    """
    Load store settings from YAML, then apply environment overrides.

    Resolution order: environment > config file > defaults. A missing file
    is not an error; a malformed one is.

    Args:
        path: Config file; defaults to ``fs-blobstore.yaml`` in the working
            directory

    Returns:
        Validated settings

    Raises:
        ConfigError: If the file or an override cannot be parsed
    """
    cfg_path = Path(path) if path else Path.cwd() / CONFIG_FILE

    data = {}
    if cfg_path.exists():
        try:
            data = yaml.safe_load(cfg_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {cfg_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{cfg_path} must contain a mapping")
        # Allow settings nested under a "storage" section
        data = data.get("storage", data)

    if ENV_BASE_PATH in os.environ:
        data["base_path"] = os.environ[ENV_BASE_PATH]
    if ENV_FSYNC in os.environ:
        data["fsync"] = _env_bool(ENV_FSYNC, os.environ[ENV_FSYNC])

    try:
        return StoreSettings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid store configuration: {e}") from e
