"""
Log-Normal Shadowing Signal Model
Converts true anchor-target distances into noisy RSSI observations and
RSSI back into estimated distances:

    rssi   = p_tx - 10 * n * log10(d) + X_sigma
    d_est  = 10 ** ((p_tx - rssi) / (10 * n))
"""

import logging
import math
import sys
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .errors import ModelPreconditionError
from .types import AnchorNode, Position, RSSIReading, SimulationParams

logger = logging.getLogger(__name__)

# Smallest positive double; keeps log(u1) finite when the uniform draw is 0
_MIN_UNIFORM = np.finfo(float).tiny

# Largest d_est exponent for which 10 ** exponent is a finite double
MAX_DISTANCE_EXPONENT = math.log10(sys.float_info.max)


def distance(p1: Position, p2: Position) -> float:
    """Euclidean distance between two positions"""
    dx = p1.x - p2.x
    dy = p1.y - p2.y
    return math.sqrt(dx * dx + dy * dy)


def gaussian_noise(mean: float = 0.0, std_dev: float = 1.0,
                   rng: Optional[np.random.Generator] = None) -> float:
    """
    Draw one Gaussian sample with the Box-Muller transform

    Args:
        mean: Distribution mean
        std_dev: Standard deviation (>= 0). Zero returns exactly `mean`.
        rng: Source of uniform draws. A fresh generator is used if omitted.

    Returns:
        mean + std_dev * z, with z ~ N(0, 1)
    """
    if std_dev < 0 or not math.isfinite(std_dev):
        raise ModelPreconditionError(f"Noise standard deviation must be >= 0, got {std_dev}")
    if std_dev == 0:
        return mean

    if rng is None:
        rng = np.random.default_rng()

    u1 = max(float(rng.random()), _MIN_UNIFORM)
    u2 = float(rng.random())
    z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return mean + std_dev * z


def synthetic_rssi(true_distance: float, params: SimulationParams,
                   rng: Optional[np.random.Generator] = None) -> float:
    """
    Noisy RSSI observed at `true_distance` meters from the transmitter

    Raises:
        ModelPreconditionError: distance is not strictly positive, or the
            model parameters are outside their domain
    """
    if not (true_distance > 0) or not math.isfinite(true_distance):
        raise ModelPreconditionError(
            f"Distance must be > 0 for the log-distance model, got {true_distance} "
            "(is the target co-located with an anchor?)"
        )
    _check_path_loss(params)

    path_loss = 10.0 * params.path_loss_n * math.log10(true_distance)
    noise = gaussian_noise(0.0, params.noise_std_dev, rng)
    return params.p_tx - path_loss + noise


def estimated_distance(rssi: float, params: SimulationParams) -> float:
    """
    Invert the noiseless model: distance implied by an RSSI value

    Raises:
        ModelPreconditionError: invalid path-loss exponent, non-finite RSSI
            or an RSSI so weak the implied distance overflows
    """
    _check_path_loss(params)
    if not math.isfinite(rssi):
        raise ModelPreconditionError(f"RSSI must be finite, got {rssi}")
    exponent = (params.p_tx - rssi) / (10.0 * params.path_loss_n)
    if exponent >= MAX_DISTANCE_EXPONENT:
        raise ModelPreconditionError(
            f"RSSI {rssi} dBm implies a distance of 10^{exponent:.1f} m, "
            "beyond the floating-point range"
        )
    return 10.0 ** exponent


def generate_readings(anchors: Sequence[AnchorNode], target: Position,
                      params: SimulationParams,
                      rng: Optional[np.random.Generator] = None) -> List[RSSIReading]:
    """
    Simulate one RSSI reading per anchor

    Args:
        anchors: Anchor nodes, readings are returned in the same order
        target: True target position
        params: Signal model parameters
        rng: Random source shared by all anchors of this run

    Returns:
        List of readings with true distance, noisy RSSI and estimated distance
    """
    if rng is None:
        rng = np.random.default_rng()

    readings = []
    for anchor in anchors:
        true_dist = distance(anchor.position, target)
        rssi = synthetic_rssi(true_dist, params, rng)
        est_dist = estimated_distance(rssi, params)
        readings.append(RSSIReading(
            anchor_id=anchor.id,
            true_dist=true_dist,
            rssi=rssi,
            est_dist=est_dist,
        ))
        logger.debug(f"Anchor {anchor.id}: d={true_dist:.3f}m rssi={rssi:.2f}dBm "
                     f"d_est={est_dist:.3f}m")

    return readings


def estimated_distances(readings: Iterable, params: SimulationParams) -> Dict[str, float]:
    """
    Estimated distance per anchor id, computed from the RSSI values only

    Args:
        readings: Objects exposing `anchor_id` and `rssi`
        params: Signal model parameters (p_tx and path_loss_n are used)
    """
    return {r.anchor_id: estimated_distance(r.rssi, params) for r in readings}


def _check_path_loss(params: SimulationParams):
    if not (params.path_loss_n > 0) or not math.isfinite(params.path_loss_n):
        raise ModelPreconditionError(
            f"Path-loss exponent must be > 0, got {params.path_loss_n}"
        )
