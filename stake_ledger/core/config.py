"""Settings for the stake-ledger CLI."""
import os
import platform
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError

APP_NAME = "stake-ledger"


def get_default_state_dir() -> Path:
    """Get platform-specific state directory, unless STAKE_LEDGER_HOME is set."""
    override = os.getenv("STAKE_LEDGER_HOME")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        return Path(os.getenv('APPDATA', Path.home())) / APP_NAME
    elif platform.system() == 'Darwin':  # macOS
        return Path.home() / 'Library' / 'Application Support' / APP_NAME
    else:  # Linux and others
        return Path.home() / '.config' / APP_NAME


def get_default_log_level() -> str:
    return os.getenv("STAKE_LEDGER_LOG_LEVEL", "INFO").upper()


class LedgerSettings(BaseModel):
    """Stake ledger configuration."""
    state_dir: Path = Field(default_factory=get_default_state_dir)
    reward_rate: int = Field(default=100, gt=0)
    token_name: str = "Stake Token"
    token_symbol: str = "STK"
    token_address: str = "0x5374616b65546f6b656e00000000000000000001"
    decimals: int = Field(default=18, ge=0)
    ledger_address: str = "staking-ledger"
    log_level: str = Field(default_factory=get_default_log_level)

    @property
    def state_file(self) -> Path:
        return self.state_dir / "ledger.json"

    @classmethod
    def from_yaml(cls, path: Path, **overrides) -> "LedgerSettings":
        """Load settings from a YAML file; ``overrides`` that are not None win.

        Raises:
            ConfigError: If the file is unreadable, not a mapping, or invalid
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")
        logger.debug(f"Loaded settings from {path}")
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.build(**data)

    @classmethod
    def build(cls, **values) -> "LedgerSettings":
        """Create settings ignoring values that are None."""
        try:
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValidationError as e:
            raise ConfigError(str(e)) from e


def load_settings(config_path: Optional[Path] = None, **overrides) -> LedgerSettings:
    if config_path:
        return LedgerSettings.from_yaml(Path(config_path), **overrides)
    return LedgerSettings.build(**overrides)
