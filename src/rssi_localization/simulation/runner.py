"""
Localization Simulation Runner

One run: synthesize readings for a target, predict its position from the
RSSI values and measure the localization error. Monte Carlo mode repeats the
run to estimate error statistics for a given noise level and geometry.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from ..core.errors import InputValidationError
from ..core.predictor import Predictor, create_predictor
from ..core.signal_model import distance, generate_readings
from ..core.types import AnchorNode, Position, SimulationParams, SimulationResult

logger = logging.getLogger(__name__)


def localization_error(true_pos: Position, predicted_pos: Position) -> float:
    """Euclidean distance between true and predicted position (meters)"""
    return distance(true_pos, predicted_pos)


@dataclass
class MonteCarloSummary:
    """Error statistics over repeated runs at one target"""
    target: Position
    n_trials: int
    errors: np.ndarray

    @property
    def mean_error(self) -> float:
        return float(np.mean(self.errors))

    @property
    def rmse(self) -> float:
        return float(np.sqrt(np.mean(self.errors ** 2)))

    @property
    def median_error(self) -> float:
        return float(np.median(self.errors))

    @property
    def p90_error(self) -> float:
        return float(np.percentile(self.errors, 90))

    @property
    def max_error(self) -> float:
        return float(np.max(self.errors))

    def to_dict(self) -> Dict:
        return {
            'target': self.target.to_dict(),
            'n_trials': self.n_trials,
            'mean_error': self.mean_error,
            'rmse': self.rmse,
            'median_error': self.median_error,
            'p90_error': self.p90_error,
            'max_error': self.max_error,
        }


class LocalizationSimulation:
    """Simulates RSSI readings and localizes the target from them"""

    def __init__(self, anchors: Sequence[AnchorNode], params: SimulationParams,
                 predictor: Optional[Predictor] = None, seed: Optional[int] = None):
        """
        Initialize simulation

        Args:
            anchors: Anchor nodes (at least 3)
            params: Signal model parameters
            predictor: Position predictor, least squares if omitted
            seed: Seed for the noise generator (None for a random seed)
        """
        self.anchors = list(anchors)
        self.params = params
        self.predictor = predictor or create_predictor("least_squares", params)
        self.rng = np.random.default_rng(seed)

    @classmethod
    def from_config(cls, config) -> 'LocalizationSimulation':
        """Build a simulation from a LocalizationConfig"""
        params = config.get_params()
        predictor = create_predictor(
            config.solver.algorithm,
            params,
            singular_threshold=config.solver.singular_threshold,
        )
        return cls(config.get_anchors(), params, predictor, seed=config.system.seed)

    def run(self, target: Optional[Position]) -> SimulationResult:
        """
        Run one simulation for `target`

        The result is only returned once every field is populated; any
        failure propagates instead of yielding a partial result.

        Raises:
            InputValidationError: no target given, or invalid anchor setup
            ModelPreconditionError: target co-located with an anchor
            GeometryError: anchors cannot localize the target
        """
        if target is None:
            raise InputValidationError("Target position must be set before running a simulation")

        readings = generate_readings(self.anchors, target, self.params, self.rng)
        predicted = self.predictor.predict(self.anchors, readings)
        error = localization_error(target, predicted)

        logger.info(f"Run complete: target ({target.x:.1f}, {target.y:.1f}) -> "
                    f"predicted ({predicted.x:.2f}, {predicted.y:.2f}), error {error:.2f} m")

        return SimulationResult(
            target_true_pos=target,
            target_predicted_pos=predicted,
            error=error,
            readings=readings,
        )

    def run_monte_carlo(self, target: Position, n_trials: int = 100) -> MonteCarloSummary:
        """
        Repeat the simulation at one target

        Args:
            target: True target position
            n_trials: Number of independent noisy runs

        Returns:
            Error statistics over all trials
        """
        if n_trials < 1:
            raise InputValidationError(f"n_trials must be >= 1, got {n_trials}")

        errors = np.empty(n_trials)
        for trial in range(n_trials):
            readings = generate_readings(self.anchors, target, self.params, self.rng)
            predicted = self.predictor.predict(self.anchors, readings)
            errors[trial] = localization_error(target, predicted)

        summary = MonteCarloSummary(target=target, n_trials=n_trials, errors=errors)
        logger.info(f"Monte Carlo ({n_trials} trials, noise {self.params.noise_std_dev} dB): "
                    f"mean error {summary.mean_error:.2f} m, RMSE {summary.rmse:.2f} m")
        return summary
