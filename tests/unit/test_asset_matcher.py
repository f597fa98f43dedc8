"""Tests for the asset matcher."""

import pytest

from brandscene.core.config import Settings
from brandscene.core.logging_config import get_logger
from brandscene.models.schemas import (
    AssetPurpose,
    BrandAsset,
    BrandRequirements,
    LogoType,
    SceneType,
    TaxonomyType,
    Visibility,
)
from brandscene.services.asset_matcher import AssetMatcher, AssetTaxonomy
from brandscene.storage.repository import InMemoryAssetRepository
from brandscene.utils.error_handler import RepositoryUnavailableError


class BrokenRepository:
    """Repository whose every query fails."""

    def query_assets(self, asset_filter):
        raise RepositoryUnavailableError("connection refused")


class FaultyRepository:
    """Repository with a programming error in its query path."""

    def query_assets(self, asset_filter):
        raise AttributeError("'NoneType' object has no attribute 'keywords'")


@pytest.fixture
def matcher(repository):
    """Create AssetMatcher over the sample catalog."""
    return AssetMatcher(Settings(), get_logger(__name__), repository)


def _product(asset_id: str, **kwargs) -> BrandAsset:
    defaults = dict(
        url=f"https://cdn.example.com/{asset_id}.jpg",
        name=f"Bottle {asset_id}",
        asset_type="products-hero",
        category="product",
    )
    defaults.update(kwargs)
    return BrandAsset(id=asset_id, **defaults)


def test_match_products_and_logo(matcher):
    """Test requirement-driven matching ranks the named product and primary logo first."""
    requirements = BrandRequirements(
        product_mentioned=True,
        product_names=["black cohosh"],
        product_visibility=Visibility.FEATURED,
        logo_required=True,
        logo_type=LogoType.PRIMARY,
    )

    matches = matcher.match_assets(requirements)

    assert [m.asset.id for m in matches.products] == ["p-cohosh", "p-sleep"]
    assert matches.products[0].score == 74
    assert matches.products[0].matched_keywords == ["black cohosh"]
    assert matches.products[1].score == 20
    assert [m.asset.id for m in matches.logos] == ["l-primary", "l-watermark"]
    assert matches.logos[0].score == 67
    assert matches.locations == []
    assert matches.error is None


def test_location_assets_for_branded_environment(matcher):
    """Test branded environments look up location assets."""
    requirements = BrandRequirements(logo_required=True, scene_type=SceneType.BRANDED_ENVIRONMENT)

    matches = matcher.match_assets(requirements)

    assert [m.asset.id for m in matches.locations] == ["loc-store"]
    assert matches.locations[0].score == 70


def test_match_caps(logger):
    """Test products are capped at five and logos at three."""
    assets = [_product(f"p{i}") for i in range(8)]
    assets += [
        BrandAsset(id=f"l{i}", url=f"https://cdn.example.com/l{i}.png", name=f"Logo {i}", asset_type="logo-primary")
        for i in range(6)
    ]
    matcher = AssetMatcher(Settings(), logger, InMemoryAssetRepository(assets))

    matches = matcher.match_assets(
        BrandRequirements(product_mentioned=True, logo_required=True, logo_type=LogoType.PRIMARY)
    )

    assert len(matches.products) == 5
    assert len(matches.logos) == 3


def test_ties_keep_repository_order(logger):
    """Test equally scored assets keep their repository order."""
    assets = [_product(asset_id) for asset_id in ["c", "a", "d", "b"]]
    matcher = AssetMatcher(Settings(), logger, InMemoryAssetRepository(assets))

    matches = matcher.find_product_assets([], Visibility.VISIBLE)

    assert len({m.score for m in matches}) == 1
    assert [m.asset.id for m in matches] == ["c", "a", "d", "b"]


def test_untyped_assets_score_from_text_only(logger):
    """Test assets without a declared type only score from name matches."""
    assets = [
        BrandAsset(id="u1", url="https://cdn.example.com/u1.jpg", name="Black cohosh jar", keywords=["product"]),
        BrandAsset(id="u2", url="https://cdn.example.com/u2.jpg", name="Mystery jar", keywords=["product"], priority=9),
    ]
    matcher = AssetMatcher(Settings(), logger, InMemoryAssetRepository(assets))

    matches = matcher.find_product_assets(["black cohosh"], Visibility.VISIBLE)

    assert [m.asset.id for m in matches] == ["u1"]
    assert matches[0].score == 10
    assert matches[0].match_type == "exact"


def test_inactive_assets_are_ignored(logger):
    """Test inactive assets never match."""
    assets = [_product("live"), _product("retired", is_active=False)]
    matcher = AssetMatcher(Settings(), logger, InMemoryAssetRepository(assets))

    matches = matcher.find_product_assets([], Visibility.VISIBLE)

    assert [m.asset.id for m in matches] == ["live"]


def test_repository_failure_returns_empty_set(logger):
    """Test a failing repository degrades to an empty match set."""
    matcher = AssetMatcher(Settings(), logger, BrokenRepository())

    matches = matcher.match_assets(BrandRequirements(product_mentioned=True, logo_required=True))

    assert matches.is_empty
    assert "connection refused" in matches.error


def test_get_best_asset(matcher):
    """Test single best asset lookups per purpose."""
    assert matcher.get_best_asset(AssetPurpose.LOGO_OVERLAY).id == "l-primary"
    assert matcher.get_best_asset(AssetPurpose.PRODUCT_HERO, "black cohosh").id == "p-cohosh"
    assert matcher.get_best_asset(AssetPurpose.PRODUCT_HERO) is None
    assert matcher.get_best_asset(AssetPurpose.LOCATION).id == "loc-store"


def test_get_best_asset_survives_repository_failure(logger):
    """Test best asset lookups return None when the repository is down."""
    matcher = AssetMatcher(Settings(), logger, BrokenRepository())

    assert matcher.get_best_asset(AssetPurpose.WATERMARK) is None


def test_programming_errors_propagate(logger):
    """Test only repository outages are absorbed, other errors surface."""
    matcher = AssetMatcher(Settings(), logger, FaultyRepository())

    with pytest.raises(AttributeError):
        matcher.match_assets(BrandRequirements(product_mentioned=True))
    with pytest.raises(AttributeError):
        matcher.get_best_asset(AssetPurpose.WATERMARK)
    with pytest.raises(AttributeError):
        matcher.search_by_keywords(["logo"])


def test_search_by_keywords(matcher):
    """Test generic keyword search scoring."""
    results = matcher.search_by_keywords(["logo"])

    assert [m.asset.id for m in results] == ["l-primary", "l-watermark"]
    assert results[0].score == 10 + 1 + 5
    assert results[1].score == 10


def test_taxonomy_resolution_order():
    """Test taxonomy types are ordered by matched keyword specificity."""
    taxonomy = AssetTaxonomy()

    resolved = taxonomy.resolve_types("close-up of black cohosh bottle on desk with the logo")

    assert [t.id for t, _ in resolved] == ["products-hero", "products-lifestyle", "logo-primary-color"]
    assert resolved[0][1] == ["close-up", "bottle"]


def test_find_matching_brand_assets(matcher):
    """Test taxonomy-driven matching groups and ranks assets by category."""
    grouped = matcher.find_matching_brand_assets("Close-up of Black Cohosh bottle on desk with the logo")

    assert grouped.matched_types == ["products-hero", "products-lifestyle", "logo-primary-color"]
    assert [g.category for g in grouped.groups] == ["product", "logo"]

    products = grouped.groups[0]
    assert [m.asset.id for m in products.matches] == ["p-cohosh", "p-sleep"]
    # keyword lengths 14 + rank bonus 20 + type bonus 25 + entity hit 40
    assert products.matches[0].score == 99
    assert products.matches[1].score == 7 + 18 + 25
    assert products.total_score == 149

    logos = grouped.groups[1]
    assert [m.asset.id for m in logos.matches] == ["l-primary"]
    assert logos.matches[0].score == 4 + 16 + 25
    assert grouped.get("logo") == logos.matches
    assert grouped.get("location") == []


def test_find_matching_untyped_assets(logger):
    """Test untyped assets are scored from the matched types' keywords."""
    assets = [
        BrandAsset(id="u1", url="https://cdn.example.com/u1.jpg", name="Amber bottle", keywords=["bottle"]),
        BrandAsset(id="u2", url="https://cdn.example.com/u2.jpg", name="Amber bottle", keywords=["bottle"]),
    ]
    matcher = AssetMatcher(Settings(), logger, InMemoryAssetRepository(assets))

    grouped = matcher.find_matching_brand_assets("A bottle on the counter")

    group = grouped.groups[0]
    assert group.category == "uncategorized"
    assert [m.asset.id for m in group.matches] == ["u1", "u2"]
    assert group.matches[0].score == len("bottle")


def test_find_matching_with_custom_taxonomy(logger):
    """Test a caller-provided taxonomy replaces the default one."""
    taxonomy = AssetTaxonomy(
        [TaxonomyType(id="tea-cup", category="product", label="Tea", prompt_keywords=["tea cup"])]
    )
    assets = [BrandAsset(id="t1", url="https://cdn.example.com/t1.jpg", name="Mug", asset_type="tea-cup")]
    matcher = AssetMatcher(Settings(), logger, InMemoryAssetRepository(assets), taxonomy)

    grouped = matcher.find_matching_brand_assets("Steam rising from a tea cup")

    assert grouped.matched_types == ["tea-cup"]
    assert grouped.groups[0].matches[0].asset.id == "t1"


def test_find_matching_no_types(matcher):
    """Test text without taxonomy cues yields no groups."""
    grouped = matcher.find_matching_brand_assets("Sunset over the mountains")

    assert grouped.groups == []
    assert grouped.matched_types == []
