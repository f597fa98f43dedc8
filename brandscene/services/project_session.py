"""Project Session - explicit per-project state shared across scenes."""

import threading
from typing import Any, Iterable, Optional

from brandscene.models.schemas import BrandAsset


class ProjectSession:
    """
    Caller-owned state for one project.

    Holds the set of stock items already used by earlier scenes and the logo
    selection cache. Nothing here is cleared automatically: call ``reset()``
    at the start of every project. All methods are thread-safe so scenes of
    the same project can run in parallel.
    """

    def __init__(self, project_id: str = "default"):
        self.project_id = project_id
        self._lock = threading.Lock()
        self._used_stock_ids: set[str] = set()
        self._logo_cache: dict[str, BrandAsset] = {}

    def reset(self, project_id: Optional[str] = None) -> None:
        """Forget used stock items and cached logos, optionally switching project."""
        with self._lock:
            if project_id is not None:
                self.project_id = project_id
            self._used_stock_ids.clear()
            self._logo_cache.clear()

    def mark_used(self, item_id: str) -> None:
        with self._lock:
            self._used_stock_ids.add(item_id)

    def is_used(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._used_stock_ids

    def claim_first_unused(self, candidate_ids: Iterable[str]) -> Optional[str]:
        """
        Atomically claim the first candidate not used by an earlier scene.

        Args:
            candidate_ids: Stock item ids in preference order

        Returns:
            The claimed id, or None if every candidate was already used
        """
        with self._lock:
            for item_id in candidate_ids:
                if item_id not in self._used_stock_ids:
                    self._used_stock_ids.add(item_id)
                    return item_id
        return None

    @property
    def used_count(self) -> int:
        with self._lock:
            return len(self._used_stock_ids)

    def get_cached_logo(self, key: str) -> Optional[BrandAsset]:
        with self._lock:
            return self._logo_cache.get(key)

    def cache_logo(self, key: str, asset: BrandAsset) -> None:
        with self._lock:
            self._logo_cache[key] = asset

    def snapshot(self) -> dict[str, Any]:
        """Diagnostic view of the session state."""
        with self._lock:
            return {
                "project_id": self.project_id,
                "used_stock_ids": sorted(self._used_stock_ids),
                "cached_logos": sorted(self._logo_cache),
            }
