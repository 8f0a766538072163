"""
Output Manager — Per-run output folders for the products sync.

Every sync run writes into its own folder under OUTPUT_DIR, named after the
minute the run started and the RUN_NAME:

    output/
      20260220_1430_GraphQL_Sync/
        products.json        fetched products in server order (SAVE_JSON)
        sync_results.json    run metadata, settings, RunStats, error

Folders older than OUTPUT_RETENTION_DAYS are pruned before a new run starts.
Only folders that carry the run timestamp prefix are ever removed, so other
content in OUTPUT_DIR is safe. OUTPUT_RETENTION_DAYS=0 disables pruning.

Pipeline context:
    run.py prunes expired runs before SyncOrchestrator.run(); the orchestrator
    opens the run folder in its SAVE OUTPUT step and hands products and the
    results dict to save_products() and save_results().
"""

import json
import os
import shutil
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from .models import Product

PRODUCTS_FILE = "products.json"
RESULTS_FILE = "sync_results.json"

_STAMP_FORMAT = "%Y%m%d_%H%M"
_STAMP_LENGTH = len("YYYYMMDD_HHMM")


def _run_started_at(folder_name: str) -> Optional[datetime]:
    """Timestamp encoded in a run folder name, or None for foreign folders."""
    if folder_name[_STAMP_LENGTH:_STAMP_LENGTH + 1] != "_":
        return None
    try:
        return datetime.strptime(folder_name[:_STAMP_LENGTH], _STAMP_FORMAT)
    except ValueError:
        return None


class OutputManager:
    """Owns the output folder of one sync run and prunes expired ones.

    Attributes:
        base_dir: Root output directory (OUTPUT_DIR).
        run_name: Folder suffix; anything outside [A-Za-z0-9_-] becomes '_'.
        retention_days: Age in days after which run folders are pruned (0 = never).
        run_dir: This run's folder, None until open_run_dir().
    """

    def __init__(self, base_dir: str, run_name: str, retention_days: int = 30):
        self.base_dir = base_dir
        self.run_name = run_name
        self.retention_days = retention_days
        self.run_dir: Optional[str] = None
        self._started_at = datetime.now()

    @property
    def folder_name(self) -> str:
        suffix = "".join(c if c.isalnum() or c in "-_" else "_" for c in self.run_name)
        return f"{self._started_at.strftime(_STAMP_FORMAT)}_{suffix}"

    def open_run_dir(self) -> str:
        """Create this run's folder (once) and return its path."""
        if self.run_dir is None:
            self.run_dir = os.path.join(self.base_dir, self.folder_name)
            os.makedirs(self.run_dir, exist_ok=True)
        return self.run_dir

    def path_for(self, filename: str) -> str:
        """Path of a file inside this run's folder.

        Raises:
            RuntimeError: If open_run_dir() has not been called yet.
        """
        if self.run_dir is None:
            raise RuntimeError("Run folder not opened. Call open_run_dir() first.")
        return os.path.join(self.run_dir, filename)

    def save_products(self, products: List[Product]) -> str:
        """Write products.json (a list of {id, title, updatedAt}) and return its path."""
        return self._write_json(PRODUCTS_FILE, [p.to_dict() for p in products])

    def save_results(self, results: Dict[str, Any]) -> str:
        """Write sync_results.json and return its path."""
        return self._write_json(RESULTS_FILE, results)

    def prune_expired_runs(self, debug: bool = False) -> int:
        """Delete run folders older than retention_days.

        Args:
            debug: If True, print each pruned or unreadable folder.

        Returns:
            The number of folders deleted.
        """
        if self.retention_days <= 0 or not os.path.isdir(self.base_dir):
            return 0

        cutoff = datetime.now() - timedelta(days=self.retention_days)
        pruned = 0
        for name in sorted(os.listdir(self.base_dir)):
            path = os.path.join(self.base_dir, name)
            started_at = _run_started_at(name)
            if started_at is None or started_at >= cutoff or not os.path.isdir(path):
                continue
            try:
                shutil.rmtree(path)
            except OSError as e:
                if debug:
                    print(f"  Warning: Could not remove {name}: {e}")
                continue
            pruned += 1
            if debug:
                print(f"  Pruned expired run: {name}")
        return pruned

    def _write_json(self, filename: str, payload: Any) -> str:
        path = self.path_for(filename)
        with open(path, "w") as f:
            json.dump(payload, f, indent=2, default=str)
        return path
