"""
YAML Configuration Manager for the RSSI localization simulator
Provides centralized configuration loading and validation
"""

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.predictor import PREDICTORS
from ..core.types import AnchorNode, Position, SimulationParams
from .config_loader import ConfigLoader

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class SystemConfig:
    """System-wide configuration"""
    seed: Optional[int] = None
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict) -> 'SystemConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class SignalConfig:
    """Log-normal shadowing model configuration"""
    p_tx_dbm: float = -40.0  # RSSI at 1 m
    path_loss_n: float = 2.5
    noise_std_db: float = 4.0

    def __post_init__(self):
        self.p_tx_dbm = float(self.p_tx_dbm)
        self.path_loss_n = float(self.path_loss_n)
        self.noise_std_db = float(self.noise_std_db)

    def to_params(self) -> SimulationParams:
        return SimulationParams(
            p_tx=self.p_tx_dbm,
            path_loss_n=self.path_loss_n,
            noise_std_dev=self.noise_std_db,
        )

    @classmethod
    def from_dict(cls, d: dict) -> 'SignalConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class SolverConfig:
    """Solver configuration"""
    algorithm: str = "least_squares"
    singular_threshold: float = 1e-10

    def __post_init__(self):
        # PyYAML reads "1e-10" as a string
        self.singular_threshold = float(self.singular_threshold)

    @classmethod
    def from_dict(cls, d: dict) -> 'SolverConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class StorageConfig:
    """Saved-run storage configuration"""
    runs_dir: str = "runs/"
    owner: str = "local"

    @classmethod
    def from_dict(cls, d: dict) -> 'StorageConfig':
        return cls(**{k: v for k, v in d.items() if k in cls.__annotations__})


@dataclass
class AnchorConfig:
    """Individual anchor configuration"""
    id: str
    position: List[float]

    def to_anchor(self) -> AnchorNode:
        return AnchorNode(str(self.id), Position(float(self.position[0]), float(self.position[1])))

    @classmethod
    def from_dict(cls, d: dict) -> 'AnchorConfig':
        return cls(id=str(d['id']), position=list(d['position']))


def default_anchors() -> List[AnchorConfig]:
    """Four anchors in the corners of a 100 m x 100 m room"""
    return [
        AnchorConfig("A1", [10.0, 10.0]),
        AnchorConfig("A2", [90.0, 10.0]),
        AnchorConfig("A3", [90.0, 90.0]),
        AnchorConfig("A4", [10.0, 90.0]),
    ]


class LocalizationConfig:
    """Main configuration manager for the simulator"""

    def __init__(self, config_path: Optional[str] = None,
                 overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration

        Args:
            config_path: Path to YAML config file
            overrides: Dot-notation overrides applied after loading
        """
        self.config_path = config_path
        self.raw_config: Dict[str, Any] = {}

        self.system = SystemConfig()
        self.signal = SignalConfig()
        self.solver = SolverConfig()
        self.storage = StorageConfig()
        self.anchors: List[AnchorConfig] = default_anchors()

        if config_path:
            self.load(config_path, overrides)
        elif overrides:
            self.apply(ConfigLoader().apply_overrides(self.to_dict(), overrides))

    def load(self, config_path: str, overrides: Optional[Dict[str, Any]] = None):
        """
        Load configuration from YAML file

        Args:
            config_path: Path to YAML file
            overrides: Dot-notation overrides
        """
        loader = ConfigLoader(base_path=str(Path(config_path).parent))
        self.apply(loader.load_config(config_path, overrides))
        self.config_path = config_path
        logger.debug(f"Loaded configuration from {config_path}")

    def apply(self, raw_config: Dict[str, Any]):
        """Populate the sections from an already merged dictionary"""
        self.raw_config = raw_config

        if 'system' in raw_config:
            self.system = SystemConfig.from_dict(raw_config['system'])

        if 'signal' in raw_config:
            self.signal = SignalConfig.from_dict(raw_config['signal'])

        if 'solver' in raw_config:
            self.solver = SolverConfig.from_dict(raw_config['solver'])

        if 'storage' in raw_config:
            self.storage = StorageConfig.from_dict(raw_config['storage'])

        if 'anchors' in raw_config:
            self.anchors = [AnchorConfig.from_dict(a) for a in raw_config['anchors']]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'system': asdict(self.system),
            'signal': asdict(self.signal),
            'solver': asdict(self.solver),
            'storage': asdict(self.storage),
            'anchors': [
                {'id': a.id, 'position': [float(v) for v in a.position]}
                for a in self.anchors
            ],
        }

    def save(self, output_path: Optional[str] = None):
        """
        Save configuration to YAML file

        Args:
            output_path: Path to save to (uses original path if not specified)
        """
        if output_path is None and self.config_path is None:
            raise ValueError("No output path specified")

        output_path = Path(output_path or self.config_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def get_anchors(self) -> List[AnchorNode]:
        """Anchor nodes in configuration order"""
        return [a.to_anchor() for a in self.anchors]

    def get_params(self) -> SimulationParams:
        return self.signal.to_params()

    def validate(self) -> List[str]:
        """
        Validate configuration

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if len(self.anchors) < 3:
            errors.append(f"Need at least 3 anchors, got {len(self.anchors)}")

        anchor_ids = [a.id for a in self.anchors]
        if len(anchor_ids) != len(set(anchor_ids)):
            errors.append("Duplicate anchor IDs found")

        for a in self.anchors:
            if len(a.position) != 2:
                errors.append(f"Anchor {a.id} position must be [x, y], got {a.position}")

        if self.signal.path_loss_n <= 0:
            errors.append(f"path_loss_n must be > 0, got {self.signal.path_loss_n}")

        if self.signal.noise_std_db < 0:
            errors.append(f"noise_std_db must be >= 0, got {self.signal.noise_std_db}")

        if self.solver.algorithm not in PREDICTORS:
            errors.append(f"Unknown solver algorithm: {self.solver.algorithm} "
                          f"(available: {sorted(PREDICTORS)})")

        if self.solver.singular_threshold <= 0:
            errors.append(f"singular_threshold must be > 0, got {self.solver.singular_threshold}")

        if str(self.system.log_level).upper() not in LOG_LEVELS:
            errors.append(f"Invalid log level: {self.system.log_level}")

        return errors

    def summary(self) -> str:
        """Get configuration summary"""
        anchor_list = ", ".join(f"{a.id}({a.position[0]:g}, {a.position[1]:g})"
                                for a in self.anchors)
        return f"""
RSSI Localization Configuration
===============================
Anchors: {len(self.anchors)} [{anchor_list}]
Signal: P_tx={self.signal.p_tx_dbm} dBm, n={self.signal.path_loss_n}, noise={self.signal.noise_std_db} dB
Solver: {self.solver.algorithm} (singular threshold {self.solver.singular_threshold:g})
Seed: {self.system.seed}
Runs dir: {self.storage.runs_dir} (owner: {self.storage.owner})
Config file: {self.config_path}
"""


def create_example_config(output_path: str = "configs/example.yaml") -> LocalizationConfig:
    """Create an example configuration file"""
    config = LocalizationConfig()

    config.system.seed = 42
    config.signal.p_tx_dbm = -40.0
    config.signal.path_loss_n = 2.5
    config.signal.noise_std_db = 4.0
    config.solver.algorithm = "least_squares"

    config.save(output_path)
    logger.info(f"Example config saved to {output_path}")
    return config
