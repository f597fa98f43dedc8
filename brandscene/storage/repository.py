"""Storage repositories for brand assets."""

import json
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from brandscene.core.config import Settings
from brandscene.models.schemas import AssetFilter, BrandAsset
from brandscene.utils.error_handler import RepositoryUnavailableError


def asset_matches_filter(asset: BrandAsset, asset_filter: AssetFilter) -> bool:
    """
    Apply an AssetFilter to one asset.

    Criteria are combined with an inclusive OR; a filter without criteria
    matches every asset. ``active_only`` is always applied.

    Args:
        asset: Asset snapshot
        asset_filter: Query filter

    Returns:
        True if the asset belongs to the result set
    """
    if asset_filter.active_only and not asset.is_active:
        return False
    if not asset_filter.has_criteria:
        return True

    asset_type = (asset.asset_type or "").lower()
    category = (asset.category or "").lower()
    keywords = {k.lower() for k in asset.keywords}
    name = asset.name.lower()

    if asset_type and asset_filter.types and any(t.lower() in asset_type for t in asset_filter.types):
        return True
    if asset_filter.category and (
        category == asset_filter.category.lower() or asset_filter.category.lower() in asset_type
    ):
        return True
    if asset_filter.keywords_any and keywords.intersection(k.lower() for k in asset_filter.keywords_any):
        return True
    if asset_filter.name_contains and any(s.lower() in name for s in asset_filter.name_contains):
        return True
    if asset_filter.entity_types and (asset.entity_type or "").lower() in {
        e.lower() for e in asset_filter.entity_types
    }:
        return True
    return False


class InMemoryAssetRepository:
    """Asset repository backed by a list, preserving insertion order."""

    def __init__(self, assets: Optional[Iterable[BrandAsset]] = None):
        self._assets: list[BrandAsset] = list(assets or [])

    def add(self, asset: BrandAsset) -> None:
        self._assets.append(asset)

    def query_assets(self, asset_filter: AssetFilter) -> list[BrandAsset]:
        return [a for a in self._assets if asset_matches_filter(a, asset_filter)]

    def all_assets(self) -> list[BrandAsset]:
        return list(self._assets)


class JsonAssetRepository:
    """Asset repository backed by a JSON catalog file."""

    def __init__(self, settings: Settings, logger: Any, catalog_path: Optional[Path] = None):
        """
        Initialize the repository.

        Args:
            settings: Application settings
            logger: Logger instance
            catalog_path: Catalog file (defaults to settings.asset_catalog_path)
        """
        self.settings = settings
        self.logger = logger
        self.catalog_path = Path(catalog_path or settings.asset_catalog_path)

    def _load(self) -> list[BrandAsset]:
        if not self.catalog_path.exists():
            raise RepositoryUnavailableError(f"Asset catalog not found: {self.catalog_path}")

        try:
            with open(self.catalog_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryUnavailableError(f"Asset catalog unreadable: {e}") from e

        records = raw.get("assets", []) if isinstance(raw, dict) else raw
        assets = []
        for record in records:
            try:
                assets.append(BrandAsset(**record))
            except ValidationError as e:
                self.logger.warning(f"Skipping malformed asset record {record.get('id', '?')}: {e}")
        return assets

    def query_assets(self, asset_filter: AssetFilter) -> list[BrandAsset]:
        """
        Query assets with inclusive OR filtering.

        Args:
            asset_filter: Query filter

        Returns:
            Matching assets in catalog order

        Raises:
            RepositoryUnavailableError: If the catalog cannot be read
        """
        assets = [a for a in self._load() if asset_matches_filter(a, asset_filter)]
        self.logger.debug(f"Catalog query returned {len(assets)} assets")
        return assets

    def save_assets(self, assets: list[BrandAsset]) -> None:
        """
        Write the catalog file.

        Args:
            assets: Assets to persist
        """
        self.catalog_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.catalog_path, "w", encoding="utf-8") as f:
            json.dump({"assets": [a.model_dump() for a in assets]}, f, indent=2, ensure_ascii=False)
        self.logger.info(f"Asset catalog saved to: {self.catalog_path} ({len(assets)} assets)")
