"""Asset Matcher - scores and ranks brand assets against scene requirements."""

from typing import Any, Optional, Protocol

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    AssetFilter,
    AssetMatch,
    AssetPurpose,
    BrandAsset,
    BrandRequirements,
    CategoryMatchGroup,
    GroupedAssetMatches,
    LogoType,
    MatchedAssetSet,
    SceneType,
    TaxonomyType,
    Visibility,
)
from brandscene.utils.error_handler import (
    RepositoryUnavailableError,
    format_error_message,
    get_fallback_suggestion,
)
from brandscene.utils.text_utils import find_phrases, normalize_text


class AssetRepository(Protocol):
    """Port for the external asset repository."""

    def query_assets(self, asset_filter: AssetFilter) -> list[BrandAsset]: ...


# Type sub-qualifiers that reward the requested visibility intent
SUB_QUALIFIERS: dict[Visibility, list[str]] = {
    Visibility.FEATURED: ["hero", "closeup", "close-up"],
    Visibility.PROMINENT: ["hero", "closeup", "close-up"],
    Visibility.VISIBLE: ["in-context", "lifestyle"],
    Visibility.BACKGROUND: ["group", "lifestyle"],
    Visibility.SUBTLE: ["group", "lifestyle"],
}

LOGO_CUES: dict[LogoType, list[str]] = {
    LogoType.PRIMARY: ["primary", "main", "full color", "color"],
    LogoType.WATERMARK: ["watermark", "overlay", "mono"],
    LogoType.CERTIFICATION: ["usda", "organic", "certification", "certified"],
    LogoType.PARTNER: ["partner", "association", "society", "institute"],
}

LOCATION_CUES = [
    "store", "storefront", "location", "facility", "clinic", "wellness center",
    "office", "interior", "exterior", "farm",
]

DEFAULT_TAXONOMY: list[TaxonomyType] = [
    TaxonomyType(
        id="products-hero",
        category="product",
        label="Product hero shot",
        prompt_keywords=["product shot", "hero shot", "close-up", "closeup", "bottle", "packaging", "label"],
    ),
    TaxonomyType(
        id="products-group",
        category="product",
        label="Product group",
        prompt_keywords=["product line", "collection", "lineup", "assortment", "product family"],
    ),
    TaxonomyType(
        id="products-lifestyle",
        category="product",
        label="Product in context",
        prompt_keywords=["supplement", "capsule", "tincture", "lotion", "extract", "gummies", "on desk", "on table"],
    ),
    TaxonomyType(
        id="logo-primary-color",
        category="logo",
        label="Primary logo (color)",
        prompt_keywords=["logo", "brand mark", "branding", "branded"],
    ),
    TaxonomyType(
        id="logo-watermark",
        category="logo",
        label="Watermark",
        prompt_keywords=["watermark"],
    ),
    TaxonomyType(
        id="logo-certification",
        category="logo",
        label="Certification badge",
        prompt_keywords=["usda", "organic", "certified", "certification"],
    ),
    TaxonomyType(
        id="location-storefront",
        category="location",
        label="Storefront",
        prompt_keywords=["storefront", "store", "shop front", "exterior", "building"],
    ),
    TaxonomyType(
        id="location-interior",
        category="location",
        label="Interior",
        prompt_keywords=["wellness center", "clinic", "treatment room", "interior", "facility", "waiting room"],
    ),
    TaxonomyType(
        id="people-practitioner",
        category="people",
        label="Practitioner",
        prompt_keywords=["practitioner", "doctor", "nurse", "staff", "team member"],
    ),
]


class AssetTaxonomy:
    """Declared asset types and the prompt keywords that select them."""

    def __init__(self, types: Optional[list[TaxonomyType]] = None):
        self.types = list(types) if types is not None else list(DEFAULT_TAXONOMY)

    def resolve_types(self, text: str) -> list[tuple[TaxonomyType, list[str]]]:
        """
        Resolve the taxonomy types whose prompt keywords appear in text.

        Args:
            text: Normalized direction text

        Returns:
            (type, matched keywords) pairs, most specific first (longest total
            keyword length), ties kept in taxonomy order
        """
        resolved = []
        for taxonomy_type in self.types:
            hits = find_phrases(text, taxonomy_type.prompt_keywords)
            if hits:
                resolved.append((taxonomy_type, hits))
        resolved.sort(key=lambda pair: sum(len(k) for k in pair[1]), reverse=True)
        return resolved


class AssetMatcher:
    """Ranks brand assets by weighted keyword and taxonomy scoring."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        repository: AssetRepository,
        taxonomy: Optional[AssetTaxonomy] = None,
    ):
        """
        Initialize the asset matcher.

        Args:
            settings: Application settings
            logger: Logger instance
            repository: Asset repository port
            taxonomy: Asset taxonomy (defaults to the built-in taxonomy)
        """
        self.settings = settings
        self.logger = logger
        self.repository = repository
        self.taxonomy = taxonomy or AssetTaxonomy()
        self.weights = settings.match_weights
        self.brand_names = [n.lower() for n in settings.brand_names]

    # ------------------------------------------------------------------
    # Requirement-driven matching
    # ------------------------------------------------------------------

    def match_assets(self, requirements: BrandRequirements) -> MatchedAssetSet:
        """
        Match products, logos and locations for a scene.

        Repository failures never propagate: they are logged and an empty set
        carrying the error message is returned.

        Args:
            requirements: Analyzed brand requirements

        Returns:
            MatchedAssetSet with score-sorted, capped matches
        """
        try:
            products: list[AssetMatch] = []
            logos: list[AssetMatch] = []
            locations: list[AssetMatch] = []

            if requirements.product_mentioned:
                products = self.find_product_assets(requirements.product_names, requirements.product_visibility)
            if requirements.logo_required:
                logos = self.find_logo_assets(requirements.logo_type, requirements.branding_visibility)
            if requirements.scene_type == SceneType.BRANDED_ENVIRONMENT:
                locations = self.find_location_assets()
        except RepositoryUnavailableError as e:
            self.logger.warning(
                format_error_message(
                    "Matching brand assets",
                    e,
                    suggestion=get_fallback_suggestion("Asset Matching", e),
                )
            )
            return MatchedAssetSet(error=str(e))

        self.logger.info(
            f"Matched assets: products={len(products)}, logos={len(logos)}, locations={len(locations)}"
        )
        return MatchedAssetSet(products=products, logos=logos, locations=locations)

    def find_product_assets(self, product_names: list[str], visibility: Visibility) -> list[AssetMatch]:
        """
        Score product assets.

        Args:
            product_names: Product names detected in the scene
            visibility: Requested product visibility

        Returns:
            At most max_product_matches positive-score matches
        """
        candidates = self.repository.query_assets(
            AssetFilter(types=["product"], category="product", keywords_any=["product"], entity_types=["product"])
        )
        w = self.weights
        names = [n.lower() for n in product_names]
        scored: list[AssetMatch] = []

        for asset in candidates:
            text = asset.searchable_text()
            asset_type = (asset.asset_type or "").lower()
            score = 0
            reasons: list[str] = []

            matched = [n for n in names if n in text]
            if matched:
                score += w.product_name * len(matched)
                reasons.append(f"product name x{len(matched)}")
            if asset.entity_type == "product" and any(n in (asset.entity_name or "").lower() for n in names):
                score += w.product_metadata
                reasons.append("product metadata")

            if asset_type:
                if "product" in asset_type:
                    score += w.declared_type
                    reasons.append(f"type {asset.asset_type}")
                bonus = self._sub_qualifier_bonus(asset, visibility)
                if bonus:
                    score += bonus
                    reasons.append(f"{visibility.value} qualifier +{bonus}")
                score += self._nudges(asset, w.transparent_product, reasons)

            if score > 0:
                scored.append(
                    AssetMatch(
                        asset=asset,
                        score=score,
                        matched_keywords=matched,
                        match_reason=", ".join(reasons),
                        match_type="exact" if matched else ("type" if asset_type else "keyword"),
                    )
                )
            self.logger.debug(f"Product candidate {asset.id}: score={score}")

        return self._rank(scored, self.settings.max_product_matches)

    def find_logo_assets(self, logo_type: Optional[LogoType], visibility: Visibility) -> list[AssetMatch]:
        """
        Score logo assets.

        Args:
            logo_type: Requested logo type (primary when unset)
            visibility: Requested branding visibility

        Returns:
            At most max_logo_matches positive-score matches
        """
        logo_type = logo_type or LogoType.PRIMARY
        candidates = self.repository.query_assets(
            AssetFilter(types=["logo"], category="logo", keywords_any=["logo"], name_contains=["logo"])
        )
        w = self.weights
        scored: list[AssetMatch] = []

        for asset in candidates:
            text = asset.searchable_text()
            asset_type = (asset.asset_type or "").lower()
            score = 0
            reasons: list[str] = []

            cues = [c for c in LOGO_CUES[logo_type] if c in text or c in asset_type]
            if cues:
                score += w.logo_cue
                reasons.append(f"{logo_type.value} cue")
            brands = [b for b in self.brand_names if b in text]
            if brands:
                score += w.brand_name
                reasons.append("brand name")

            if asset_type:
                if "logo" in asset_type:
                    score += w.declared_type
                    reasons.append(f"type {asset.asset_type}")
                if logo_type.value in asset_type:
                    score += w.sub_qualifier_max
                    reasons.append(f"{logo_type.value} qualifier")
                elif visibility == Visibility.PROMINENT and "large" in text:
                    score += w.sub_qualifier_max // 5
                    reasons.append("large variant")
                score += self._nudges(asset, w.transparent_logo, reasons)

            if score > 0:
                scored.append(
                    AssetMatch(
                        asset=asset,
                        score=score,
                        matched_keywords=cues + brands,
                        match_reason=", ".join(reasons),
                        match_type="type" if asset_type else "keyword",
                    )
                )
            self.logger.debug(f"Logo candidate {asset.id}: score={score}")

        return self._rank(scored, self.settings.max_logo_matches)

    def find_location_assets(self) -> list[AssetMatch]:
        """
        Score location assets.

        Returns:
            At most max_location_matches positive-score matches
        """
        candidates = self.repository.query_assets(
            AssetFilter(
                types=["location"],
                category="location",
                keywords_any=["store", "location", "facility"],
                entity_types=["location"],
            )
        )
        w = self.weights
        scored: list[AssetMatch] = []

        for asset in candidates:
            text = asset.searchable_text()
            asset_type = (asset.asset_type or "").lower()
            score = 0
            reasons: list[str] = []

            cues = [c for c in LOCATION_CUES if c in text]
            if cues:
                score += w.location_cue * len(cues)
                reasons.append(f"location cue x{len(cues)}")
            if asset_type:
                if "location" in asset_type:
                    score += w.declared_type
                    reasons.append(f"type {asset.asset_type}")
                score += self._nudges(asset, 0, reasons)

            if score > 0:
                scored.append(
                    AssetMatch(
                        asset=asset,
                        score=score,
                        matched_keywords=cues,
                        match_reason=", ".join(reasons),
                        match_type="type" if asset_type else "keyword",
                    )
                )

        return self._rank(scored, self.settings.max_location_matches)

    def _sub_qualifier_bonus(self, asset: BrandAsset, visibility: Visibility) -> int:
        qualifiers = SUB_QUALIFIERS.get(visibility, [])
        asset_type = (asset.asset_type or "").lower()
        if any(q in asset_type for q in qualifiers):
            return self.weights.sub_qualifier_max
        if any(q in asset.name.lower() for q in qualifiers):
            return self.weights.sub_qualifier_max // 5
        return 0

    def _nudges(self, asset: BrandAsset, transparent_bonus: int, reasons: list[str]) -> int:
        bonus = asset.priority
        if asset.priority:
            reasons.append(f"priority {asset.priority}")
        if asset.is_default:
            bonus += self.weights.default_asset
            reasons.append("default")
        if transparent_bonus and asset.is_transparent_format:
            bonus += transparent_bonus
            reasons.append("transparent")
        return bonus

    @staticmethod
    def _rank(matches: list[AssetMatch], limit: int) -> list[AssetMatch]:
        # list.sort is stable: ties keep repository order
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:limit]

    # ------------------------------------------------------------------
    # Single-asset and keyword lookups
    # ------------------------------------------------------------------

    def get_best_asset(self, purpose: AssetPurpose, product_name: Optional[str] = None) -> Optional[BrandAsset]:
        """
        Return the single best asset for a purpose.

        Args:
            purpose: What the asset will be used for
            product_name: Product name (required for product-hero)

        Returns:
            Best asset, or None when nothing matches or the repository fails
        """
        try:
            if purpose == AssetPurpose.PRODUCT_HERO:
                if not product_name:
                    return None
                matches = self.find_product_assets([product_name], Visibility.FEATURED)
            elif purpose == AssetPurpose.LOGO_OVERLAY:
                matches = self.find_logo_assets(LogoType.PRIMARY, Visibility.PROMINENT)
            elif purpose == AssetPurpose.WATERMARK:
                matches = self.find_logo_assets(LogoType.WATERMARK, Visibility.SUBTLE)
            elif purpose == AssetPurpose.LOCATION:
                matches = self.find_location_assets()
            else:
                groups = self.repository.query_assets(
                    AssetFilter(name_contains=["group", "products", "collection"], keywords_any=["collection"])
                )
                return groups[0] if groups else None
        except RepositoryUnavailableError as e:
            self.logger.warning(f"Best asset lookup for {purpose.value} failed: {e}")
            return None

        return matches[0].asset if matches else None

    def search_by_keywords(self, keywords: list[str]) -> list[AssetMatch]:
        """
        Generic keyword search over every active asset.

        Args:
            keywords: Keywords to look for (substring match)

        Returns:
            Matches sorted by score (hits x keyword_hit + priority + default bonus)
        """
        try:
            assets = self.repository.query_assets(AssetFilter())
        except RepositoryUnavailableError as e:
            self.logger.warning(
                format_error_message(
                    "Keyword asset search", e, suggestion=get_fallback_suggestion("Asset Matching", e)
                )
            )
            return []

        w = self.weights
        results: list[AssetMatch] = []
        for asset in assets:
            text = asset.searchable_text()
            matched = [kw for kw in keywords if kw.lower() in text]
            if not matched:
                continue
            score = len(matched) * w.keyword_hit + asset.priority
            if asset.is_default:
                score += w.default_asset_keyword_path
            results.append(
                AssetMatch(
                    asset=asset,
                    score=score,
                    matched_keywords=matched,
                    match_reason=f"{len(matched)} keyword hits",
                    match_type="exact" if len(matched) > 2 else "keyword",
                )
            )

        results.sort(key=lambda m: m.score, reverse=True)
        return results

    # ------------------------------------------------------------------
    # Taxonomy-driven full-text matching
    # ------------------------------------------------------------------

    def find_matching_brand_assets(self, visual_direction: str) -> GroupedAssetMatches:
        """
        Match assets against a long visual direction through the taxonomy.

        Taxonomy types are resolved from the text first; assets of those types
        are scored by keyword specificity, type rank, and direct name or entity
        hits. Untyped assets are scored from the union of the matched types'
        keywords.

        Args:
            visual_direction: Free-text visual direction

        Returns:
            Matches grouped by category, categories ranked by aggregate score
        """
        direction = normalize_text(visual_direction)
        resolved = self.taxonomy.resolve_types(direction)
        if not resolved:
            self.logger.debug("No taxonomy types matched the visual direction")
            return GroupedAssetMatches()

        type_ids = [t.id for t, _ in resolved]
        union_keywords: list[str] = []
        for _, hits in resolved:
            union_keywords.extend(k for k in hits if k not in union_keywords)

        try:
            candidates = self.repository.query_assets(
                AssetFilter(types=type_ids, keywords_any=union_keywords, name_contains=union_keywords)
            )
        except RepositoryUnavailableError as e:
            self.logger.warning(
                format_error_message(
                    "Taxonomy asset matching", e, suggestion=get_fallback_suggestion("Asset Matching", e)
                )
            )
            return GroupedAssetMatches(matched_types=type_ids, error=str(e))

        matches: list[tuple[str, AssetMatch]] = []
        for asset in candidates:
            result = self._score_taxonomy_asset(asset, direction, resolved, union_keywords)
            if result is not None:
                matches.append(result)

        return GroupedAssetMatches(matched_types=type_ids, groups=self._group_by_category(matches))

    def _score_taxonomy_asset(
        self,
        asset: BrandAsset,
        direction: str,
        resolved: list[tuple[TaxonomyType, list[str]]],
        union_keywords: list[str],
    ) -> Optional[tuple[str, AssetMatch]]:
        w = self.weights
        asset_type = (asset.asset_type or "").lower()
        reasons: list[str] = []

        if asset_type:
            index = next((i for i, (t, _) in enumerate(resolved) if t.id.lower() == asset_type), None)
            if index is None:
                index = next((i for i, (t, _) in enumerate(resolved) if t.id.lower() in asset_type), None)
            if index is None:
                return None
            taxonomy_type, hits = resolved[index]
            score = sum(len(k) for k in hits)
            score += max(0, w.position_bonus_base - index * w.position_bonus_step)
            if hits or index < w.top_type_count:
                score += w.type_match_bonus
            reasons.append(f"type {taxonomy_type.id} (rank {index + 1})")
            matched_keywords = list(hits)
            category = asset.category or taxonomy_type.category
            match_type = "type"
        else:
            text = asset.searchable_text()
            matched_keywords = [k for k in union_keywords if k in text]
            score = sum(len(k) for k in matched_keywords)
            if matched_keywords:
                reasons.append(f"{len(matched_keywords)} prompt keywords")
            category = asset.category or "uncategorized"
            match_type = "keyword"

        name = asset.name.lower().strip()
        if name and name in direction:
            score += w.direct_name_hit
            reasons.append("name in direction")
            match_type = "exact"
        entity = (asset.entity_name or "").lower().strip()
        if (entity and entity in direction) or any(
            b in direction and b in asset.searchable_text() for b in self.brand_names
        ):
            score += w.entity_name_hit
            reasons.append("entity in direction")

        if score <= 0:
            return None
        return category, AssetMatch(
            asset=asset,
            score=score,
            matched_keywords=matched_keywords,
            match_reason=", ".join(reasons),
            match_type=match_type,
        )

    def _group_by_category(self, matches: list[tuple[str, AssetMatch]]) -> list[CategoryMatchGroup]:
        grouped: dict[str, list[AssetMatch]] = {}
        for category, match in matches:
            grouped.setdefault(category, []).append(match)

        groups = []
        for category, items in grouped.items():
            total = sum(m.score for m in items)
            items.sort(key=lambda m: m.score, reverse=True)
            groups.append(
                CategoryMatchGroup(
                    category=category,
                    total_score=total,
                    matches=items[: self.settings.taxonomy_matches_per_category],
                )
            )
        groups.sort(key=lambda g: g.total_score, reverse=True)
        return groups
