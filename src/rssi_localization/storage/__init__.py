"""Persistence of saved simulation runs"""

from .run_store import RunStore

__all__ = ['RunStore']
