"""Stake pool CLI configuration."""
import os
from pathlib import Path
from typing import Optional, Union
import yaml
from loguru import logger
from pydantic import BaseModel, field_validator

from .core.store import STATE_FILE, get_state_dir

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class PoolConfig(BaseModel):
    """Settings for the command line front end."""
    state_dir: str = ""
    log_level: str = "INFO"
    owner: Optional[str] = None  # default owner for `init`
    token_symbol: str = "STK"

    def __init__(self, **data):
        super().__init__(**data)
        if not self.state_dir:
            self.state_dir = get_state_dir()

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {value}")
        return value

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir) / STATE_FILE


def load_config(path: Optional[Union[str, Path]] = None) -> PoolConfig:
    """Build the config from defaults, a YAML file and the environment.

    Environment variables (STAKE_POOL_STATE_DIR, STAKE_POOL_LOG_LEVEL) win
    over the file.
    """
    data = {}
    if path is None:
        path = Path(get_state_dir()) / "config.yaml"
        if not path.exists():
            path = None
    if path is not None:
        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid config file {path}: {e}")
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        logger.debug(f"Loaded config from {path}")

    if os.getenv("STAKE_POOL_STATE_DIR"):
        data["state_dir"] = os.environ["STAKE_POOL_STATE_DIR"]
    if os.getenv("STAKE_POOL_LOG_LEVEL"):
        data["log_level"] = os.environ["STAKE_POOL_LOG_LEVEL"]
    return PoolConfig(**data)
