"""
Tests for single runs and Monte Carlo batches
"""

import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from rssi_localization.config import LocalizationConfig
from rssi_localization.core import (
    AnchorNode, GeometryError, InputValidationError, ModelPreconditionError,
    Position, Predictor, SimulationParams,
)
from rssi_localization.simulation import LocalizationSimulation, MonteCarloSummary, localization_error

SQUARE_ANCHORS = [
    AnchorNode("A1", Position(10, 10)),
    AnchorNode("A2", Position(90, 10)),
    AnchorNode("A3", Position(90, 90)),
    AnchorNode("A4", Position(10, 90)),
]
NOISELESS = SimulationParams(p_tx=-40.0, path_loss_n=2.5, noise_std_dev=0.0)
NOISY = SimulationParams(p_tx=-40.0, path_loss_n=2.5, noise_std_dev=4.0)


class OriginPredictor(Predictor):
    """Always predicts the origin"""

    name = "origin"

    def predict(self, anchors, readings):
        return Position(0.0, 0.0)


class TestSingleRun:
    """Test one simulation run"""

    @pytest.mark.parametrize("target", [Position(50, 50), Position(20, 30)])
    def test_noiseless_run(self, target):
        result = LocalizationSimulation(SQUARE_ANCHORS, NOISELESS).run(target)

        assert result.is_complete
        assert result.target_true_pos == target
        assert result.error < 1e-6
        assert len(result.readings) == 4
        assert result.target_predicted_pos.x == pytest.approx(target.x, abs=1e-6)
        assert result.target_predicted_pos.y == pytest.approx(target.y, abs=1e-6)

    def test_seeded_runs_reproducible(self):
        a = LocalizationSimulation(SQUARE_ANCHORS, NOISY, seed=7).run(Position(30, 70))
        b = LocalizationSimulation(SQUARE_ANCHORS, NOISY, seed=7).run(Position(30, 70))
        c = LocalizationSimulation(SQUARE_ANCHORS, NOISY, seed=8).run(Position(30, 70))
        assert a == b
        assert a.target_predicted_pos != c.target_predicted_pos

    def test_noisy_run_has_error(self):
        result = LocalizationSimulation(SQUARE_ANCHORS, NOISY, seed=3).run(Position(30, 70))
        assert result.error > 0
        assert result.error == pytest.approx(
            localization_error(result.target_true_pos, result.target_predicted_pos))

    def test_target_required(self):
        with pytest.raises(InputValidationError):
            LocalizationSimulation(SQUARE_ANCHORS, NOISELESS).run(None)

    def test_target_on_anchor(self):
        with pytest.raises(ModelPreconditionError):
            LocalizationSimulation(SQUARE_ANCHORS, NOISELESS).run(Position(90, 90))

    def test_collinear_anchors_fail(self):
        anchors = [AnchorNode(c, Position(x, 0)) for c, x in zip("abc", (0, 50, 100))]
        with pytest.raises(GeometryError):
            LocalizationSimulation(anchors, NOISELESS).run(Position(40, 30))

    def test_predictor_substitution(self):
        sim = LocalizationSimulation(SQUARE_ANCHORS, NOISELESS, predictor=OriginPredictor())
        result = sim.run(Position(3, 4))
        assert result.target_predicted_pos == Position(0.0, 0.0)
        assert result.error == pytest.approx(5.0)

    def test_from_config(self):
        config = LocalizationConfig(overrides={'signal.noise_std_db': 0, 'system.seed': 1})
        result = LocalizationSimulation.from_config(config).run(Position(20, 30))
        assert result.error < 1e-6


class TestMonteCarlo:
    """Test repeated runs"""

    def test_noiseless_trials(self):
        summary = LocalizationSimulation(SQUARE_ANCHORS, NOISELESS).run_monte_carlo(Position(20, 30), 10)
        assert summary.n_trials == 10
        assert summary.max_error < 1e-6

    def test_noisy_statistics(self):
        sim = LocalizationSimulation(SQUARE_ANCHORS, NOISY, seed=11)
        summary = sim.run_monte_carlo(Position(50, 50), 200)

        assert len(summary.errors) == 200
        assert np.all(summary.errors >= 0)
        assert summary.mean_error > 0
        assert summary.rmse >= summary.mean_error
        assert summary.median_error <= summary.p90_error <= summary.max_error

    def test_more_noise_more_error(self):
        quiet = SimulationParams(p_tx=-40.0, path_loss_n=2.5, noise_std_dev=1.0)
        loud = SimulationParams(p_tx=-40.0, path_loss_n=2.5, noise_std_dev=8.0)
        target = Position(40, 60)
        quiet_rmse = LocalizationSimulation(SQUARE_ANCHORS, quiet, seed=5).run_monte_carlo(target, 300).rmse
        loud_rmse = LocalizationSimulation(SQUARE_ANCHORS, loud, seed=5).run_monte_carlo(target, 300).rmse
        assert loud_rmse > quiet_rmse

    def test_invalid_trial_count(self):
        with pytest.raises(InputValidationError):
            LocalizationSimulation(SQUARE_ANCHORS, NOISY).run_monte_carlo(Position(50, 50), 0)

    def test_summary_statistics(self):
        summary = MonteCarloSummary(Position(0, 0), 2, np.array([3.0, 4.0]))
        assert summary.mean_error == pytest.approx(3.5)
        assert summary.rmse == pytest.approx(math.sqrt(12.5))
        assert summary.max_error == 4.0
        assert summary.to_dict()['n_trials'] == 2
