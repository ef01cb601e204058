"""
Linear Least-Squares Multilateration
Estimates a 2D position from anchor positions and estimated ranges
"""

import logging
import math
from collections import abc
from typing import Dict, Mapping, Sequence, Tuple, Union

import numpy as np

from .errors import GeometryError, InputValidationError
from .types import AnchorNode, Position

logger = logging.getLogger(__name__)

MIN_ANCHORS = 3
DEFAULT_SINGULAR_THRESHOLD = 1e-10
# |det| relative to the diagonal product; rounding leaves collinear
# geometry at ~1e-16 of it
RELATIVE_SINGULAR_TOLERANCE = 1e-9

Distances = Union[Mapping[str, float], Sequence[float]]


def solve_2x2(matrix: np.ndarray, vector: np.ndarray,
              singular_threshold: float = DEFAULT_SINGULAR_THRESHOLD,
              relative_tolerance: float = RELATIVE_SINGULAR_TOLERANCE) -> np.ndarray:
    """
    Solve a 2x2 linear system with Cramer's rule

    Args:
        matrix: 2x2 coefficient matrix
        vector: Right-hand side of length 2
        singular_threshold: Smallest accepted |det|
        relative_tolerance: Smallest accepted |det| / |a00 * a11|, so that
            rejection does not depend on the coordinate scale

    Returns:
        Solution vector [x, y]

    Raises:
        GeometryError: |det| below either threshold
    """
    det = matrix[0, 0] * matrix[1, 1] - matrix[0, 1] * matrix[1, 0]
    scale = abs(matrix[0, 0] * matrix[1, 1])
    if abs(det) < singular_threshold or abs(det) <= relative_tolerance * scale:
        raise GeometryError(
            f"Singular normal matrix (det={det:.3e}): anchor geometry is "
            "collinear or degenerate and cannot localize the target",
            determinant=float(det),
        )

    x = (vector[0] * matrix[1, 1] - vector[1] * matrix[0, 1]) / det
    y = (matrix[0, 0] * vector[1] - matrix[1, 0] * vector[0]) / det
    return np.array([x, y])


class MultilaterationSolver:
    """Linearized least-squares position solver for 2D multilateration"""

    def __init__(self, singular_threshold: float = DEFAULT_SINGULAR_THRESHOLD):
        """
        Initialize solver

        Args:
            singular_threshold: |det(A^T A)| below which the geometry is rejected
        """
        self.singular_threshold = singular_threshold

    def build_linear_system(self, anchors: Sequence[AnchorNode],
                            distances: Distances) -> Tuple[np.ndarray, np.ndarray]:
        """
        Linearize the range equations against the first anchor

        Subtracting the reference circle (x-x1)^2 + (y-y1)^2 = r1^2 from every
        other circle removes the quadratic terms, leaving one row

            2(xi-x1) x + 2(yi-y1) y = r1^2 - ri^2 - x1^2 - y1^2 + xi^2 + yi^2

        per non-reference anchor.

        Returns:
            A of shape (n-1, 2) and b of length n-1
        """
        ranges = self._resolve_distances(anchors, distances)
        return self._linearize(_anchor_array(anchors), ranges)

    @staticmethod
    def _linearize(positions: np.ndarray, ranges: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        ref = positions[0]
        r1 = ranges[0]
        others = positions[1:]

        A = 2.0 * (others - ref)
        b = (r1 ** 2 - ranges[1:] ** 2
             - np.dot(ref, ref)
             + np.sum(others ** 2, axis=1))
        return A, b

    def solve(self, anchors: Sequence[AnchorNode], distances: Distances) -> Position:
        """
        Estimate the target position

        Args:
            anchors: At least 3 anchors with distinct ids
            distances: Estimated range per anchor id, or a sequence aligned
                with `anchors`

        Returns:
            Least-squares position estimate

        Raises:
            InputValidationError: fewer than 3 anchors, missing or invalid ranges
            GeometryError: collinear or coincident anchors
        """
        position, _ = self.solve_with_info(anchors, distances)
        return position

    def solve_with_info(self, anchors: Sequence[AnchorNode],
                        distances: Distances) -> Tuple[Position, Dict]:
        """
        Estimate the target position and report fit diagnostics

        Returns:
            Position estimate and a dict with n_anchors, determinant,
            condition_number and residual_rms (meters)
        """
        ranges = self._resolve_distances(anchors, distances)
        positions = _anchor_array(anchors)
        A, b = self._linearize(positions, ranges)

        # Normal equations; A^T A is always 2x2
        AtA = A.T @ A
        Atb = A.T @ b

        try:
            solution = solve_2x2(AtA, Atb, self.singular_threshold)
        except GeometryError:
            logger.warning(f"Rejected anchor geometry for {len(anchors)} anchors: "
                           f"{[a.id for a in anchors]}")
            raise

        fitted = np.linalg.norm(positions - solution, axis=1)
        residual_rms = float(np.sqrt(np.mean((fitted - ranges) ** 2)))

        info = {
            'n_anchors': len(anchors),
            'determinant': float(np.linalg.det(AtA)),
            'condition_number': float(np.linalg.cond(AtA)),
            'residual_rms': residual_rms,
        }
        logger.debug(f"Solved position ({solution[0]:.3f}, {solution[1]:.3f}), "
                     f"residual RMS {residual_rms:.3f}m")
        return Position.from_array(solution), info

    def _resolve_distances(self, anchors: Sequence[AnchorNode],
                           distances: Distances) -> np.ndarray:
        """Validate inputs and return ranges aligned with the anchor order"""
        if len(anchors) < MIN_ANCHORS:
            raise InputValidationError(
                f"At least {MIN_ANCHORS} anchors are required for multilateration, "
                f"got {len(anchors)}"
            )

        ids = [a.id for a in anchors]
        if len(ids) != len(set(ids)):
            raise InputValidationError(f"Duplicate anchor ids: {ids}")

        if isinstance(distances, abc.Mapping):
            ranges = []
            for anchor_id in ids:
                if anchor_id not in distances:
                    raise InputValidationError(f"Missing distance for anchor {anchor_id}")
                ranges.append(distances[anchor_id])
        else:
            ranges = list(distances)
            if len(ranges) != len(anchors):
                raise InputValidationError(
                    f"Got {len(ranges)} distances for {len(anchors)} anchors"
                )

        for anchor_id, r in zip(ids, ranges):
            if not math.isfinite(r) or r <= 0:
                raise InputValidationError(
                    f"Distance for anchor {anchor_id} must be positive and finite, got {r}"
                )

        return np.asarray(ranges, dtype=float)


def _anchor_array(anchors: Sequence[AnchorNode]) -> np.ndarray:
    return np.array([[a.x, a.y] for a in anchors], dtype=float)


def multilaterate(anchors: Sequence[AnchorNode], distances: Distances) -> Position:
    """Solve with the default solver settings"""
    return MultilaterationSolver().solve(anchors, distances)
