# bridge/src/widget_bridge/config.py
"""
Bridge configuration loaded from a YAML file.

File format:
```yaml
target_name: ipython.widget
entry_point_group: widget_bridge.types
load_entry_points: true
preload_modules:
  - my_widgets.registration
log_level: INFO
```
"""
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .registry import DEFAULT_ENTRY_POINT_GROUP

logger = logging.getLogger(__name__)

DEFAULT_TARGET_NAME = "ipython.widget"
CONFIG_FILE_NAME = "widget-bridge.yaml"
HOME_ENV_VAR = "WIDGET_BRIDGE_HOME"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def get_widget_bridge_home_dir() -> Path:
    """Directory holding the bridge config and logs."""
    home = os.environ.get(HOME_ENV_VAR)
    if home:
        return Path(home)
    return Path.home() / ".widget_bridge"


class WidgetBridgeConfig(BaseModel):
    model_config = ConfigDict(extra='forbid')

    target_name: str = Field(default=DEFAULT_TARGET_NAME, description="Comm target the managers register")
    entry_point_group: str = Field(default=DEFAULT_ENTRY_POINT_GROUP, description="Entry point group announcing widget types")
    load_entry_points: bool = Field(default=True, description="Register installed widget types at startup")
    preload_modules: List[str] = Field(default_factory=list, description="Modules imported at startup for their registrations")
    log_level: str = Field(default="INFO")

    @field_validator('target_name')
    @classmethod
    def validate_target_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("target_name must not be empty")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'")
        return level


def load_config(path: Optional[Union[str, Path]] = None) -> WidgetBridgeConfig:
    """
    Load the configuration file.

    A missing file yields the defaults; an unreadable or invalid one raises
    ConfigError.
    """
    config_path = Path(path) if path is not None else get_widget_bridge_home_dir() / CONFIG_FILE_NAME
    if not config_path.exists():
        logger.debug(f"Config file not found, using defaults: {config_path}")
        return WidgetBridgeConfig()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

    if not data:
        logger.warning(f"Empty config file: {config_path}")
        return WidgetBridgeConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    try:
        config = WidgetBridgeConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}", context={"errors": e.errors()}) from e

    logger.info(f"Loaded widget bridge config from {config_path}")
    return config
