"""
Tests for the prediction request contract
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from rssi_localization.core import Position, SimulationParams, distance, synthetic_rssi
from rssi_localization.service import PredictRequest, handle_predict_request, health

ANCHORS = [
    {"id": "A1", "x": 10, "y": 10},
    {"id": "A2", "x": 90, "y": 10},
    {"id": "A3", "x": 90, "y": 90},
    {"id": "A4", "x": 10, "y": 90},
]


def noiseless_request(target=Position(20, 30), anchors=ANCHORS, p_tx=-40.0, n=2.5):
    params = SimulationParams(p_tx=p_tx, path_loss_n=n)
    readings = [
        {"id": a["id"], "rssi": synthetic_rssi(distance(Position(a["x"], a["y"]), target), params)}
        for a in anchors
    ]
    return {"anchors": anchors, "rssiReadings": readings, "params": {"pTx": p_tx, "n": n}}


class TestSuccessfulRequests:
    """Test valid requests"""

    def test_predicts_target(self):
        status, body = handle_predict_request(noiseless_request())
        assert status == 200
        assert body["predictedPos"]["x"] == pytest.approx(20, abs=1e-6)
        assert body["predictedPos"]["y"] == pytest.approx(30, abs=1e-6)

    def test_path_loss_alias(self):
        payload = noiseless_request()
        payload["params"] = {"pTx": -40.0, "pathLossN": 2.5}
        status, body = handle_predict_request(payload)
        assert status == 200
        assert body["predictedPos"]["x"] == pytest.approx(20, abs=1e-6)

    def test_reading_order_irrelevant(self):
        payload = noiseless_request(Position(70, 45))
        payload["rssiReadings"] = list(reversed(payload["rssiReadings"]))
        status, body = handle_predict_request(payload)
        assert status == 200
        assert body["predictedPos"]["x"] == pytest.approx(70, abs=1e-6)
        assert body["predictedPos"]["y"] == pytest.approx(45, abs=1e-6)

    def test_request_decoding(self):
        request = PredictRequest.from_json(noiseless_request())
        assert [a.id for a in request.anchors] == ["A1", "A2", "A3", "A4"]
        assert request.params.p_tx == -40.0
        assert request.params.path_loss_n == 2.5

    def test_nested_anchor_positions(self):
        payload = noiseless_request()
        payload["anchors"] = [
            {"id": "A1", "position": {"x": 10, "y": 10}},
            {"id": "A2", "position": [90, 10]},
        ] + ANCHORS[2:]
        request = PredictRequest.from_json(payload)
        assert request.anchors[0].position == Position(10.0, 10.0)
        assert request.anchors[1].position == Position(90.0, 10.0)

        status, body = handle_predict_request(payload)
        assert status == 200
        assert body["predictedPos"]["x"] == pytest.approx(20.0, abs=1e-6)
        assert body["predictedPos"]["y"] == pytest.approx(30.0, abs=1e-6)

    def test_short_position_list_rejected(self):
        payload = noiseless_request()
        payload["anchors"] = [{"id": "A1", "position": [10]}] + ANCHORS[1:]
        status, body = handle_predict_request(payload)
        assert status == 400
        assert body["type"] == "validation"


class TestRejectedRequests:
    """Test validation and geometry failures"""

    @pytest.mark.parametrize("field", ["anchors", "rssiReadings", "params"])
    def test_missing_field(self, field):
        payload = noiseless_request()
        del payload[field]
        status, body = handle_predict_request(payload)
        assert status == 400
        assert "Missing required fields" in body["error"]
        assert body["type"] == "validation"

    def test_too_few_anchors(self):
        status, body = handle_predict_request(noiseless_request(anchors=ANCHORS[:2]))
        assert status == 400
        assert "At least 3 anchors" in body["error"]

    def test_missing_reading(self):
        payload = noiseless_request()
        payload["rssiReadings"] = payload["rssiReadings"][:3]
        status, body = handle_predict_request(payload)
        assert status == 400
        assert "A4" in body["error"]

    def test_collinear_geometry(self):
        anchors = [{"id": "a", "x": 0, "y": 0}, {"id": "b", "x": 50, "y": 0},
                   {"id": "c", "x": 100, "y": 0}]
        status, body = handle_predict_request(noiseless_request(Position(40, 30), anchors=anchors))
        assert status == 422
        assert body["type"] == "geometry"

    def test_non_positive_exponent(self):
        payload = noiseless_request()
        payload["params"]["n"] = 0
        status, body = handle_predict_request(payload)
        assert status == 400
        assert body["type"] == "precondition"

    def test_extreme_rssi_is_client_error(self):
        payload = noiseless_request()
        payload["rssiReadings"][0]["rssi"] = -9000
        status, body = handle_predict_request(payload)
        assert status == 400
        assert body["type"] == "precondition"

    def test_malformed_anchor(self):
        payload = noiseless_request()
        payload["anchors"] = [{"id": "A1", "x": 10}] + ANCHORS[1:]
        status, body = handle_predict_request(payload)
        assert status == 400

    def test_body_not_object(self):
        status, _ = handle_predict_request(["not", "an", "object"])
        assert status == 400

    def test_unexpected_failure(self):
        def broken_factory(params):
            raise RuntimeError("model unavailable")

        status, body = handle_predict_request(noiseless_request(), broken_factory)
        assert status == 500
        assert body == {"error": "model unavailable", "type": "internal"}


def test_health():
    assert health()["status"] == "ok"
