"""
Prediction Request Handler

Framework-free implementation of the prediction endpoint contract:

    request:  {"anchors": [{"id", "x", "y"}, ...],
               "rssiReadings": [{"id", "rssi"}, ...],
               "params": {"pTx", "n"}}
    response: {"predictedPos": {"x", "y"}}

An HTTP layer only needs to pass the decoded JSON body in and send the
returned (status, body) pair back.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

from .. import __version__
from ..core.errors import GeometryError, InputValidationError, LocalizationError
from ..core.multilateration import MIN_ANCHORS
from ..core.predictor import Predictor, create_predictor
from ..core.types import AnchorNode, Position, RSSIObservation, SimulationParams

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNPROCESSABLE = 422
HTTP_INTERNAL_ERROR = 500

REQUIRED_FIELDS = ('anchors', 'rssiReadings', 'params')

PredictorFactory = Callable[[SimulationParams], Predictor]


@dataclass
class PredictRequest:
    """Decoded prediction request"""
    anchors: List[AnchorNode]
    readings: List[RSSIObservation]
    params: SimulationParams

    @classmethod
    def from_json(cls, payload: Any) -> 'PredictRequest':
        """
        Validate and decode a request body

        Raises:
            InputValidationError: missing fields, fewer than 3 anchors or
                malformed entries
        """
        if not isinstance(payload, dict):
            raise InputValidationError("Request body must be a JSON object")

        missing = [f for f in REQUIRED_FIELDS if payload.get(f) is None]
        if missing:
            raise InputValidationError(
                "Missing required fields: anchors, rssiReadings, or params "
                f"(missing: {', '.join(missing)})"
            )

        anchors_json = payload['anchors']
        if not isinstance(anchors_json, list) or len(anchors_json) < MIN_ANCHORS:
            raise InputValidationError(f"At least {MIN_ANCHORS} anchors are required")

        try:
            anchors = [AnchorNode.from_dict(a) for a in anchors_json]
            readings = [RSSIObservation(str(r['id']), float(r['rssi']))
                        for r in payload['rssiReadings']]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise InputValidationError(f"Malformed anchor or reading entry: {e!r}") from e

        return cls(anchors, readings, cls._parse_params(payload['params']))

    @staticmethod
    def _parse_params(params: Any) -> SimulationParams:
        # "n" and "pathLossN" are both accepted spellings of the exponent
        if not isinstance(params, dict):
            raise InputValidationError("params must be an object with pTx and n")
        exponent = params.get('n', params.get('pathLossN'))
        if 'pTx' not in params or exponent is None:
            raise InputValidationError("params must contain pTx and n")
        try:
            return SimulationParams(p_tx=float(params['pTx']), path_loss_n=float(exponent))
        except (TypeError, ValueError) as e:
            raise InputValidationError(f"Invalid params: {e}") from e


@dataclass
class PredictResponse:
    """Prediction result"""
    predicted_pos: Position

    def to_json(self) -> Dict[str, Any]:
        return {'predictedPos': self.predicted_pos.to_dict()}


def default_predictor(params: SimulationParams) -> Predictor:
    return create_predictor("least_squares", params)


def error_body(error: Exception, category: str) -> Dict[str, str]:
    return {'error': str(error), 'type': category}


def handle_predict_request(payload: Any,
                           predictor_factory: PredictorFactory = default_predictor) -> Tuple[int, Dict]:
    """
    Run one prediction request

    Args:
        payload: Decoded JSON request body
        predictor_factory: Builds the predictor for the request parameters,
            least squares by default

    Returns:
        (status code, JSON-serializable body). Validation and model
        precondition failures are 400, inadequate geometry is 422 and
        anything unexpected is 500.
    """
    try:
        request = PredictRequest.from_json(payload)
        predictor = predictor_factory(request.params)
        predicted = predictor.predict(request.anchors, request.readings)
    except GeometryError as e:
        logger.warning(f"Prediction rejected: {e}")
        return HTTP_UNPROCESSABLE, error_body(e, e.category)
    except LocalizationError as e:
        logger.info(f"Invalid prediction request: {e}")
        return HTTP_BAD_REQUEST, error_body(e, e.category)
    except Exception as e:
        logger.exception("Prediction error")
        return HTTP_INTERNAL_ERROR, error_body(e, "internal")

    return HTTP_OK, PredictResponse(predicted).to_json()


def health() -> Dict[str, str]:
    """Health check payload"""
    return {'status': 'ok', 'message': 'Predictor is available', 'version': __version__}
