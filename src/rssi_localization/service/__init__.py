"""Prediction endpoint contract, independent of any web framework"""

from .predict_api import (
    PredictRequest,
    PredictResponse,
    handle_predict_request,
    default_predictor,
    health,
)

__all__ = [
    'PredictRequest',
    'PredictResponse',
    'handle_predict_request',
    'default_predictor',
    'health',
]
