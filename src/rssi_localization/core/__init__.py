"""
Localization core: signal model, multilateration solver and predictors
"""

from .errors import (
    LocalizationError,
    InputValidationError,
    GeometryError,
    ModelPreconditionError,
)
from .types import (
    Position,
    AnchorNode,
    SimulationParams,
    RSSIReading,
    RSSIObservation,
    SimulationResult,
    SavedRun,
)
from .signal_model import (
    distance,
    gaussian_noise,
    synthetic_rssi,
    estimated_distance,
    estimated_distances,
    generate_readings,
)
from .multilateration import MultilaterationSolver, multilaterate, solve_2x2
from .predictor import Predictor, LeastSquaresPredictor, PREDICTORS, create_predictor

__all__ = [
    'LocalizationError',
    'InputValidationError',
    'GeometryError',
    'ModelPreconditionError',
    'Position',
    'AnchorNode',
    'SimulationParams',
    'RSSIReading',
    'RSSIObservation',
    'SimulationResult',
    'SavedRun',
    'distance',
    'gaussian_noise',
    'synthetic_rssi',
    'estimated_distance',
    'estimated_distances',
    'generate_readings',
    'MultilaterationSolver',
    'multilaterate',
    'solve_2x2',
    'Predictor',
    'LeastSquaresPredictor',
    'PREDICTORS',
    'create_predictor',
]
