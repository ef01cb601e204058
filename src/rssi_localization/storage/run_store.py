"""
Saved Run Storage
Keeps completed simulation runs in a JSON document, scoped by owner and
listed newest first
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..core.errors import InputValidationError
from ..core.types import Position, RSSIReading, SavedRun, SimulationParams, SimulationResult

logger = logging.getLogger(__name__)

RUNS_FILENAME = "runs.json"


class RunStore:
    """JSON-file store of SavedRun records"""

    def __init__(self, root_dir: str = "runs/",
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize run store

        Args:
            root_dir: Directory holding the runs document
            clock: Returns the current time (UTC), used for run timestamps
        """
        self.root_dir = Path(root_dir)
        self.path = self.root_dir / RUNS_FILENAME
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def save_run(self, owner: str, params: SimulationParams,
                 target_true_pos: Position, target_predicted_pos: Position,
                 error: float, readings: Sequence[RSSIReading]) -> str:
        """
        Persist one completed run

        Returns:
            Generated run id

        Raises:
            InputValidationError: missing owner or incomplete run data
        """
        if not owner:
            raise InputValidationError("An owner is required to save a run")
        if target_true_pos is None or target_predicted_pos is None or error is None:
            raise InputValidationError("No simulation results to save")

        run = SavedRun(
            id=uuid.uuid4().hex,
            timestamp=self.clock().isoformat(),
            owner=owner,
            params=params,
            target_true_pos=target_true_pos,
            target_predicted_pos=target_predicted_pos,
            error=float(error),
            readings=list(readings),
        )

        records = self._read()
        records.append(run.to_dict())
        self._write(records)

        logger.info(f"Saved run {run.id} for owner '{owner}' (error {run.error:.2f} m)")
        return run.id

    def save_result(self, owner: str, params: SimulationParams,
                    result: SimulationResult) -> str:
        """Persist a SimulationResult; incomplete results are rejected"""
        if not result.is_complete:
            raise InputValidationError("No simulation results to save")
        return self.save_run(owner, params, result.target_true_pos,
                             result.target_predicted_pos, result.error, result.readings)

    def load_runs(self, owner: Optional[str]) -> List[SavedRun]:
        """All runs of `owner`, newest first; empty for a missing owner"""
        if not owner:
            return []

        runs = [SavedRun.from_dict(r) for r in reversed(self._read()) if r['owner'] == owner]
        runs.sort(key=lambda r: r.timestamp, reverse=True)
        return runs

    def get_run(self, owner: str, run_id: str) -> SavedRun:
        """
        Fetch one run

        Raises:
            KeyError: no run with that id for this owner
        """
        for run in self.load_runs(owner):
            if run.id == run_id:
                return run
        raise KeyError(f"Run {run_id} not found for owner '{owner}'")

    def _read(self) -> List[Dict]:
        if not self.path.exists():
            return []
        with open(self.path, 'r') as f:
            data = json.load(f)
        return data.get('runs', [])

    def _write(self, records: List[Dict]):
        self.root_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix('.json.tmp')
        with open(tmp_path, 'w') as f:
            json.dump({'runs': records}, f, indent=2)
        os.replace(tmp_path, self.path)
