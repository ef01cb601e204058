"""
Data types shared by the signal model, the solver and their callers

All types serialize to one canonical snake_case schema via to_dict/from_dict.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass(frozen=True)
class Position:
    """2D position in meters"""
    x: float
    y: float

    @property
    def array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    @classmethod
    def from_array(cls, values) -> 'Position':
        return cls(float(values[0]), float(values[1]))

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, d: dict) -> 'Position':
        return cls(float(d['x']), float(d['y']))


@dataclass(frozen=True)
class AnchorNode:
    """Reference node with a known, fixed position"""
    id: str
    position: Position

    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'x': self.position.x, 'y': self.position.y}

    @classmethod
    def from_dict(cls, d: dict) -> 'AnchorNode':
        """
        Build an anchor from either flat or nested coordinates

        Accepts {'id', 'x', 'y'}, {'id', 'position': {'x', 'y'}} and
        {'id', 'position': [x, y]}.
        """
        if 'position' in d:
            pos = d['position']
            if isinstance(pos, dict):
                position = Position.from_dict(pos)
            else:
                position = Position.from_array(pos)
        else:
            position = Position(float(d['x']), float(d['y']))
        return cls(str(d['id']), position)


@dataclass(frozen=True)
class SimulationParams:
    """Log-normal shadowing model parameters for one run"""
    p_tx: float  # RSSI at the 1 m reference distance (dBm)
    path_loss_n: float  # path-loss exponent
    noise_std_dev: float = 0.0  # shadowing std (dB)

    def to_dict(self) -> Dict[str, float]:
        return {
            'p_tx': self.p_tx,
            'path_loss_n': self.path_loss_n,
            'noise_std_dev': self.noise_std_dev,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'SimulationParams':
        return cls(
            p_tx=float(d['p_tx']),
            path_loss_n=float(d['path_loss_n']),
            noise_std_dev=float(d.get('noise_std_dev', 0.0)),
        )


@dataclass(frozen=True)
class RSSIObservation:
    """RSSI value reported for one anchor, without ground truth"""
    anchor_id: str
    rssi: float


@dataclass(frozen=True)
class RSSIReading:
    """
    Simulated reading for one anchor

    true_dist is ground truth and only exists in simulation. est_dist is
    computed from rssi alone.
    """
    anchor_id: str
    true_dist: float
    rssi: float
    est_dist: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'anchor_id': self.anchor_id,
            'true_dist': self.true_dist,
            'rssi': self.rssi,
            'est_dist': self.est_dist,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'RSSIReading':
        return cls(
            anchor_id=str(d['anchor_id']),
            true_dist=float(d['true_dist']),
            rssi=float(d['rssi']),
            est_dist=float(d['est_dist']),
        )


@dataclass
class SimulationResult:
    """Outcome of one simulation run; every field is unset until a run completes"""
    target_true_pos: Optional[Position] = None
    target_predicted_pos: Optional[Position] = None
    error: Optional[float] = None
    readings: List[RSSIReading] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return (self.target_true_pos is not None
                and self.target_predicted_pos is not None
                and self.error is not None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target_true_pos': self.target_true_pos.to_dict() if self.target_true_pos else None,
            'target_predicted_pos': (self.target_predicted_pos.to_dict()
                                     if self.target_predicted_pos else None),
            'error': self.error,
            'readings': [r.to_dict() for r in self.readings],
        }


@dataclass(frozen=True)
class SavedRun:
    """Immutable snapshot of a completed run as kept by the run store"""
    id: str
    timestamp: str  # ISO-8601, UTC
    owner: str
    params: SimulationParams
    target_true_pos: Position
    target_predicted_pos: Position
    error: float
    readings: List[RSSIReading]

    def to_result(self) -> SimulationResult:
        return SimulationResult(
            target_true_pos=self.target_true_pos,
            target_predicted_pos=self.target_predicted_pos,
            error=self.error,
            readings=list(self.readings),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'owner': self.owner,
            'params': self.params.to_dict(),
            'target_true_pos': self.target_true_pos.to_dict(),
            'target_predicted_pos': self.target_predicted_pos.to_dict(),
            'error': self.error,
            'readings': [r.to_dict() for r in self.readings],
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'SavedRun':
        return cls(
            id=str(d['id']),
            timestamp=str(d['timestamp']),
            owner=str(d['owner']),
            params=SimulationParams.from_dict(d['params']),
            target_true_pos=Position.from_dict(d['target_true_pos']),
            target_predicted_pos=Position.from_dict(d['target_predicted_pos']),
            error=float(d['error']),
            readings=[RSSIReading.from_dict(r) for r in d['readings']],
        )
