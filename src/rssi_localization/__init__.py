"""
RSSI Localization Simulator

Synthesizes noisy RSSI readings from fixed anchor nodes using the log-normal
shadowing model and estimates the target position by linearized least-squares
multilateration.
"""

__version__ = "1.0.0"

from .core import (
    Position,
    AnchorNode,
    SimulationParams,
    RSSIReading,
    RSSIObservation,
    SimulationResult,
    SavedRun,
    LocalizationError,
    InputValidationError,
    GeometryError,
    ModelPreconditionError,
    distance,
    gaussian_noise,
    synthetic_rssi,
    estimated_distance,
    generate_readings,
    MultilaterationSolver,
    Predictor,
    LeastSquaresPredictor,
    create_predictor,
)

__all__ = [
    'Position',
    'AnchorNode',
    'SimulationParams',
    'RSSIReading',
    'RSSIObservation',
    'SimulationResult',
    'SavedRun',
    'LocalizationError',
    'InputValidationError',
    'GeometryError',
    'ModelPreconditionError',
    'distance',
    'gaussian_noise',
    'synthetic_rssi',
    'estimated_distance',
    'generate_readings',
    'MultilaterationSolver',
    'Predictor',
    'LeastSquaresPredictor',
    'create_predictor',
]
