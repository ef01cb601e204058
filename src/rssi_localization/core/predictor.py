"""
Position predictors

A predictor turns anchor positions plus per-anchor RSSI values into a
position estimate. The least-squares multilateration solver is the only
implementation; others register under a name in PREDICTORS.
"""

from abc import ABC, abstractmethod
from collections import abc
from typing import Dict, Mapping, Optional, Sequence, Type, Union

from .errors import InputValidationError
from .multilateration import DEFAULT_SINGULAR_THRESHOLD, MultilaterationSolver
from .signal_model import estimated_distance
from .types import AnchorNode, Position, SimulationParams

Readings = Union[Sequence, Mapping[str, float]]


def rssi_by_anchor(readings: Readings) -> Dict[str, float]:
    """
    Normalize readings to {anchor_id: rssi}

    Accepts a mapping, or a sequence of objects exposing `anchor_id` and `rssi`.
    Ground-truth fields on the readings are never looked at.
    """
    if isinstance(readings, abc.Mapping):
        return {str(k): float(v) for k, v in readings.items()}

    rssi = {}
    for reading in readings:
        if reading.anchor_id in rssi:
            raise InputValidationError(f"Duplicate RSSI reading for anchor {reading.anchor_id}")
        rssi[reading.anchor_id] = float(reading.rssi)
    return rssi


class Predictor(ABC):
    """Estimates a target position from anchor RSSI readings"""

    name = "abstract"

    @abstractmethod
    def predict(self, anchors: Sequence[AnchorNode], readings: Readings) -> Position:
        """
        Args:
            anchors: Anchor nodes with known positions
            readings: RSSI value per anchor (see rssi_by_anchor)

        Returns:
            Estimated target position
        """


class LeastSquaresPredictor(Predictor):
    """Log-distance range inversion followed by linear least-squares multilateration"""

    name = "least_squares"

    def __init__(self, params: SimulationParams,
                 solver: Optional[MultilaterationSolver] = None,
                 singular_threshold: float = DEFAULT_SINGULAR_THRESHOLD):
        self.params = params
        self.solver = solver or MultilaterationSolver(singular_threshold)

    def predict(self, anchors: Sequence[AnchorNode], readings: Readings) -> Position:
        rssi = rssi_by_anchor(readings)

        distances = {}
        for anchor in anchors:
            if anchor.id not in rssi:
                raise InputValidationError(f"Missing RSSI reading for anchor {anchor.id}")
            distances[anchor.id] = estimated_distance(rssi[anchor.id], self.params)

        return self.solver.solve(anchors, distances)


PREDICTORS: Dict[str, Type[Predictor]] = {
    LeastSquaresPredictor.name: LeastSquaresPredictor,
}


def create_predictor(name: str, params: SimulationParams, **options) -> Predictor:
    """Instantiate the predictor registered under `name`"""
    if name not in PREDICTORS:
        raise InputValidationError(
            f"Unknown predictor '{name}', available: {sorted(PREDICTORS)}"
        )
    return PREDICTORS[name](params, **options)
