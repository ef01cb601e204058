"""
Error taxonomy for the localization core
"""

from typing import Optional


class LocalizationError(Exception):
    """Base class for every failure raised by the localization core"""

    category = "localization"


class InputValidationError(LocalizationError, ValueError):
    """Caller-correctable input problem (missing fields, too few anchors, ...)"""

    category = "validation"


class ModelPreconditionError(LocalizationError, ValueError):
    """Value outside the domain of the log-distance signal model"""

    category = "precondition"


class GeometryError(LocalizationError, ArithmeticError):
    """
    Anchor geometry cannot localize the target

    Raised when the normal matrix of the linearized system is near-singular,
    i.e. the anchors are collinear or coincident.
    """

    category = "geometry"

    def __init__(self, message: str, determinant: Optional[float] = None):
        super().__init__(message)
        self.determinant = determinant
