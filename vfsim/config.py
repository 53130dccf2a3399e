"""
Simulator configuration

Settings come from an optional YAML file, then from ``VFSIM_*``
environment variables, and are validated by ``SimulatorConfig``.
"""

import logging
import os
from typing import List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .models import AllocationStrategy, FileSystem
from .state import (
    DEFAULT_ADMIN, DEFAULT_BLOCK_SIZE, DEFAULT_TOTAL_BLOCKS, initialize_filesystem
)

logger = logging.getLogger('VFSIM.config')

ENV_OVERRIDES = {
    'VFSIM_BLOCK_SIZE': 'block_size',
    'VFSIM_TOTAL_BLOCKS': 'total_blocks',
    'VFSIM_ALLOCATION_STRATEGY': 'allocation_strategy',
    'VFSIM_LOG_LEVEL': 'log_level',
}

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class UserConfig(BaseModel):
    """Extra user created when the filesystem is initialized"""
    username: str
    is_admin: bool = False


class SimulatorConfig(BaseModel):
    """Validated simulator settings"""
    block_size: int = Field(DEFAULT_BLOCK_SIZE, gt=0)
    total_blocks: int = Field(DEFAULT_TOTAL_BLOCKS, gt=0)
    allocation_strategy: AllocationStrategy = AllocationStrategy.CONTIGUOUS
    admin_username: str = DEFAULT_ADMIN
    users: List[UserConfig] = []
    log_level: str = 'WARNING'
    log_file: Optional[str] = None
    history_size: int = Field(1000, gt=0)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('users')
    @classmethod
    def validate_users(cls, v):
        names = [user.username for user in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate usernames: {', '.join(duplicates)}")
        return v

    def with_overrides(self, **overrides) -> "SimulatorConfig":
        """Return a validated copy with some settings replaced"""
        try:
            return SimulatorConfig(**dict(self.model_dump(), **overrides))
        except ValidationError as e:
            raise ConfigError(str(e))

    def create_filesystem(self) -> FileSystem:
        """Build the initial snapshot described by this configuration"""
        try:
            return initialize_filesystem(
                block_size=self.block_size,
                total_blocks=self.total_blocks,
                allocation_strategy=self.allocation_strategy,
                admin_username=self.admin_username,
                users={user.username: user.is_admin for user in self.users},
            )
        except ValueError as e:
            raise ConfigError(str(e))


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> SimulatorConfig:
    """
    Load the simulator configuration

    Args:
        path: YAML file holding a mapping of settings, optional
        environ: Environment to read overrides from, defaults to os.environ

    Returns:
        Validated configuration

    Raises:
        ConfigError: Unreadable file, malformed YAML or invalid values
    """
    data = {}
    if path:
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read configuration {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration {path} must contain a mapping")
        logger.debug(f"Loaded configuration from {path}")

    environ = os.environ if environ is None else environ
    for variable, field in ENV_OVERRIDES.items():
        if variable in environ:
            data[field] = environ[variable]

    try:
        return SimulatorConfig(**data)
    except ValidationError as e:
        raise ConfigError(str(e))
