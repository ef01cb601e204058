"""
Tests for the predictor seam and the least-squares predictor
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from rssi_localization.core import (
    PREDICTORS, AnchorNode, InputValidationError, LeastSquaresPredictor,
    MultilaterationSolver, Position, Predictor, RSSIObservation, RSSIReading,
    SimulationParams, create_predictor, generate_readings,
)

SQUARE_ANCHORS = [
    AnchorNode("A1", Position(10, 10)),
    AnchorNode("A2", Position(90, 10)),
    AnchorNode("A3", Position(90, 90)),
    AnchorNode("A4", Position(10, 90)),
]
NOISELESS = SimulationParams(p_tx=-40.0, path_loss_n=2.5, noise_std_dev=0.0)


class TestLeastSquaresPredictor:
    """Test RSSI -> distance -> position"""

    def test_noiseless_recovery(self):
        target = Position(20, 30)
        readings = generate_readings(SQUARE_ANCHORS, target, NOISELESS)
        predicted = LeastSquaresPredictor(NOISELESS).predict(SQUARE_ANCHORS, readings)
        assert predicted.x == pytest.approx(20, abs=1e-6)
        assert predicted.y == pytest.approx(30, abs=1e-6)

    def test_ground_truth_is_ignored(self):
        readings = generate_readings(SQUARE_ANCHORS, Position(20, 30), NOISELESS)
        tampered = [RSSIReading(r.anchor_id, true_dist=1.0, rssi=r.rssi, est_dist=1.0)
                    for r in readings]
        predictor = LeastSquaresPredictor(NOISELESS)
        assert predictor.predict(SQUARE_ANCHORS, readings) == \
            predictor.predict(SQUARE_ANCHORS, tampered)

    def test_observations_and_mapping(self):
        readings = generate_readings(SQUARE_ANCHORS, Position(60, 25), NOISELESS)
        predictor = LeastSquaresPredictor(NOISELESS)

        observations = [RSSIObservation(r.anchor_id, r.rssi) for r in reversed(readings)]
        mapping = {r.anchor_id: r.rssi for r in readings}

        expected = predictor.predict(SQUARE_ANCHORS, readings)
        assert np.allclose(predictor.predict(SQUARE_ANCHORS, observations).array, expected.array)
        assert np.allclose(predictor.predict(SQUARE_ANCHORS, mapping).array, expected.array)

    def test_missing_reading(self):
        readings = generate_readings(SQUARE_ANCHORS, Position(20, 30), NOISELESS)[:3]
        with pytest.raises(InputValidationError, match="A4"):
            LeastSquaresPredictor(NOISELESS).predict(SQUARE_ANCHORS, readings)

    def test_duplicate_reading(self):
        readings = [RSSIObservation("A1", -70.0), RSSIObservation("A1", -71.0)]
        with pytest.raises(InputValidationError):
            LeastSquaresPredictor(NOISELESS).predict(SQUARE_ANCHORS, readings)

    def test_uses_given_solver(self):
        solver = MultilaterationSolver(singular_threshold=1e-3)
        assert LeastSquaresPredictor(NOISELESS, solver).solver is solver


class TestPredictorRegistry:
    """Test predictor selection by name"""

    def test_least_squares_registered(self):
        assert "least_squares" in PREDICTORS
        predictor = create_predictor("least_squares", NOISELESS, singular_threshold=1e-6)
        assert isinstance(predictor, LeastSquaresPredictor)
        assert predictor.solver.singular_threshold == 1e-6

    def test_unknown_predictor(self):
        with pytest.raises(InputValidationError, match="least_squares"):
            create_predictor("gnn", NOISELESS)

    def test_predictor_is_abstract(self):
        with pytest.raises(TypeError):
            Predictor()
