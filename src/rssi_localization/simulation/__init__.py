"""Single-run and Monte Carlo localization simulations"""

from .runner import LocalizationSimulation, MonteCarloSummary, localization_error

__all__ = [
    'LocalizationSimulation',
    'MonteCarloSummary',
    'localization_error',
]
