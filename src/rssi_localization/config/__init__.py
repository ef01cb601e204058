"""Configuration management for the RSSI localization simulator"""

from .config_loader import ConfigLoader, parse_overrides
from .yaml_config import (
    LocalizationConfig,
    SystemConfig,
    SignalConfig,
    SolverConfig,
    StorageConfig,
    AnchorConfig,
    default_anchors,
    create_example_config
)

__all__ = [
    'ConfigLoader',
    'parse_overrides',
    'LocalizationConfig',
    'SystemConfig',
    'SignalConfig',
    'SolverConfig',
    'StorageConfig',
    'AnchorConfig',
    'default_anchors',
    'create_example_config'
]
