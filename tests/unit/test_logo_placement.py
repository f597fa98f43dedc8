"""Tests for logo placement, logo selection and per-scene logo plans."""

import pytest

from brandscene.core.config import Settings
from brandscene.core.logging_config import get_logger
from brandscene.models.schemas import (
    Bounds,
    BrandRequirements,
    LogoCompositionConfig,
    LogoPlacement,
    LogoPositionName,
    LogoSize,
    LogoType,
    ProductPosition,
    Visibility,
)
from brandscene.services.logo_placement import (
    LogoAssetSelector,
    LogoCompositionService,
    LogoPlacementCalculator,
)
from brandscene.services.project_session import ProjectSession
from brandscene.utils.error_handler import RepositoryUnavailableError

LOGO_SIZE = (500, 250)


class CountingRepository:
    """Repository wrapper counting queries."""

    def __init__(self, inner):
        self.inner = inner
        self.queries = 0

    def query_assets(self, asset_filter):
        self.queries += 1
        return self.inner.query_assets(asset_filter)


class BrokenRepository:
    def query_assets(self, asset_filter):
        raise RepositoryUnavailableError("database offline")


@pytest.fixture
def calculator():
    """Create LogoPlacementCalculator instance for testing."""
    return LogoPlacementCalculator(Settings(), get_logger(__name__))


def _config(**kwargs) -> LogoCompositionConfig:
    return LogoCompositionConfig(scene_id="scene_1", scene_duration=5.0, **kwargs)


# ============================================================================
# Calculator
# ============================================================================


def test_top_left_respects_margin(calculator):
    """Test a top-left logo sits on the safe-zone margin."""
    placement = LogoPlacement(logo_type=LogoType.PRIMARY, position=LogoPositionName.TOP_LEFT)

    position = calculator.calculate(placement, LOGO_SIZE, _config(safe_zone_margin=96))

    assert position.x >= 95
    assert position.y >= 95
    assert (position.width, position.height) == (230, 115)
    assert position.constraint_violation is False


@pytest.mark.parametrize(
    "name",
    [
        LogoPositionName.TOP_LEFT,
        LogoPositionName.TOP_RIGHT,
        LogoPositionName.BOTTOM_LEFT,
        LogoPositionName.BOTTOM_RIGHT,
        LogoPositionName.CENTER,
    ],
)
def test_canonical_positions_stay_in_safe_zone(calculator, name):
    """Test every canonical position keeps the logo inside the safe zone."""
    config = _config()
    placement = LogoPlacement(logo_type=LogoType.PRIMARY, position=name, size=LogoSize.LARGE)

    position = calculator.calculate(placement, LOGO_SIZE, config)

    margin = config.safe_zone_margin
    assert margin <= position.x <= config.width - position.width - margin
    assert margin <= position.y <= config.height - position.height - margin


def test_bottom_right_coordinates(calculator):
    """Test the bottom-right corner is computed from the canvas edges."""
    placement = LogoPlacement(logo_type=LogoType.PRIMARY, position=LogoPositionName.BOTTOM_RIGHT)

    position = calculator.calculate(placement, LOGO_SIZE, _config())

    assert (position.x, position.y) == (1920 - 230 - 40, 1080 - 115 - 40)


def test_moves_away_from_product_region(calculator):
    """Test a logo overlapping a product region jumps to the opposite corner."""
    placement = LogoPlacement(logo_type=LogoType.PRIMARY, position=LogoPositionName.TOP_LEFT)
    config = _config(product_regions=[Bounds(x=40, y=40, width=400, height=300)])

    position = calculator.calculate(placement, LOGO_SIZE, config)

    assert (position.x, position.y) == (1650, 925)
    assert position.overlap_unresolved is False
    assert not position.bounds.intersects(config.product_regions[0])


def test_product_regions_can_be_ignored(calculator):
    """Test region avoidance is skipped when disabled."""
    placement = LogoPlacement(logo_type=LogoType.PRIMARY, position=LogoPositionName.TOP_LEFT)
    config = _config(
        product_regions=[Bounds(x=40, y=40, width=400, height=300)],
        respect_product_regions=False,
    )

    position = calculator.calculate(placement, LOGO_SIZE, config)

    assert (position.x, position.y) == (40, 40)


def test_unresolved_overlap_is_flagged(calculator):
    """Test a logo that cannot clear the product keeps its position and is flagged."""
    placement = LogoPlacement(logo_type=LogoType.PRIMARY, position=LogoPositionName.TOP_LEFT)
    config = _config(product_regions=[Bounds(x=0, y=0, width=1920, height=1080)])

    position = calculator.calculate(placement, LOGO_SIZE, config)

    assert position.overlap_unresolved is True
    assert (position.x, position.y) == (40, 40)


def test_constraint_violation_when_logo_does_not_fit(calculator):
    """Test a logo larger than the safe zone is centred and flagged."""
    placement = LogoPlacement(logo_type=LogoType.PRIMARY, position=LogoPositionName.TOP_LEFT, size=LogoSize.XLARGE)
    config = _config(width=200, height=100, safe_zone_margin=90)

    position = calculator.calculate(placement, LOGO_SIZE, config)

    assert position.constraint_violation is True
    assert (position.width, position.height) == (50, 25)
    assert position.x == 75


def test_watermark_opacity_is_capped(calculator):
    """Test watermark opacity never exceeds the ceiling."""
    watermark = LogoPlacement(logo_type=LogoType.WATERMARK, opacity=0.9)
    primary = LogoPlacement(logo_type=LogoType.PRIMARY, opacity=0.9)

    assert calculator.calculate(watermark, LOGO_SIZE, _config()).opacity == 0.5
    assert calculator.calculate(primary, LOGO_SIZE, _config()).opacity == 0.9


def test_size_limits():
    """Test max width and max height percentages shrink the logo with its aspect."""
    config = _config()
    wide = LogoPlacement(logo_type=LogoType.PRIMARY, size=LogoSize.XLARGE, max_width_percent=10)
    tall = LogoPlacement(logo_type=LogoType.PRIMARY, size=LogoSize.LARGE, max_height_percent=20)

    assert LogoPlacementCalculator.calculate_size(wide, LOGO_SIZE, config) == (192, 96)
    assert LogoPlacementCalculator.calculate_size(tall, (500, 500), config) == (216, 216)


def test_custom_position_is_centred(calculator):
    """Test custom positions treat the percentages as the logo centre."""
    placement = LogoPlacement(
        logo_type=LogoType.PRIMARY,
        position=LogoPositionName.CUSTOM,
        custom_position=ProductPosition(x=50, y=50),
    )

    position = calculator.calculate(placement, (500, 500), _config())

    assert (position.x, position.y) == (845, 425)


def test_calculate_multiple_avoids_earlier_logos(calculator):
    """Test placed logos count as occupied space for the next one."""
    placements = [
        LogoPlacement(logo_type=LogoType.PRIMARY, asset_id="a"),
        LogoPlacement(logo_type=LogoType.PARTNER, asset_id="b"),
        LogoPlacement(logo_type=LogoType.CERTIFICATION, asset_id="c"),
    ]

    positions = calculator.calculate_multiple(placements, {"a": LOGO_SIZE, "b": LOGO_SIZE}, _config())

    assert set(positions) == {"a", "b"}
    assert (positions["a"].x, positions["a"].y) == (1650, 925)
    assert (positions["b"].x, positions["b"].y) == (40, 40)


# ============================================================================
# Selector
# ============================================================================


def test_select_primary_logo(settings, logger, repository):
    """Test the primary logo outranks the watermark."""
    selector = LogoAssetSelector(settings, logger, repository, ProjectSession())

    assert selector.select_logo(LogoType.PRIMARY).id == "l-primary"
    assert selector.select_logo(LogoType.WATERMARK).id == "l-watermark"


def test_select_logo_is_cached_per_session(settings, logger, repository):
    """Test repeated selections come from the session cache until reset."""
    counting = CountingRepository(repository)
    session = ProjectSession()
    selector = LogoAssetSelector(settings, logger, counting, session)

    first = selector.select_logo(LogoType.PRIMARY)
    second = selector.select_logo(LogoType.PRIMARY)

    assert first == second
    assert counting.queries == 1
    assert "primary-default" in session.snapshot()["cached_logos"]

    session.reset()
    selector.select_logo(LogoType.PRIMARY)
    assert counting.queries == 2


def test_select_logo_without_candidates(settings, logger, repository):
    """Test a logo type without candidates yields None."""
    selector = LogoAssetSelector(settings, logger, repository, ProjectSession())

    assert selector.select_logo(LogoType.CERTIFICATION) is None


def test_select_logo_repository_failure(settings, logger):
    """Test a failing repository yields None instead of raising."""
    selector = LogoAssetSelector(settings, logger, BrokenRepository(), ProjectSession())

    assert selector.select_logo(LogoType.PRIMARY) is None


def test_select_multiple(settings, logger, repository):
    """Test selecting several logo types skips the missing ones."""
    selector = LogoAssetSelector(settings, logger, repository, ProjectSession())

    selected = selector.select_multiple([LogoType.PRIMARY, LogoType.CERTIFICATION, LogoType.WATERMARK])

    assert {t: a.id for t, a in selected.items()} == {
        LogoType.PRIMARY: "l-primary",
        LogoType.WATERMARK: "l-watermark",
    }


# ============================================================================
# Composition plans
# ============================================================================


@pytest.fixture
def composition(settings, logger, repository):
    """Create LogoCompositionService over the sample catalog."""
    selector = LogoAssetSelector(settings, logger, repository, ProjectSession())
    return LogoCompositionService(settings, logger, selector)


def test_build_config_primary(composition):
    """Test a visible primary logo is planned bottom-right with a fade-in."""
    requirements = BrandRequirements(logo_required=True, logo_type=LogoType.PRIMARY)

    config = composition.build_config("scene_1", requirements, 5.0)

    assert len(config.logos) == 1
    logo = config.logos[0]
    assert logo.asset_id == "l-primary"
    assert logo.position == LogoPositionName.BOTTOM_RIGHT
    assert logo.size == LogoSize.MEDIUM
    assert logo.opacity == 0.9
    assert logo.start_frame == 15
    assert config.fps == 30


def test_build_config_prominent(composition):
    """Test prominent branding gets a large top-left logo from frame zero."""
    requirements = BrandRequirements(
        logo_required=True,
        logo_type=LogoType.PRIMARY,
        branding_visibility=Visibility.PROMINENT,
    )

    logo = composition.build_config("scene_1", requirements, 5.0).logos[0]

    assert logo.position == LogoPositionName.TOP_LEFT
    assert logo.size == LogoSize.LARGE
    assert logo.animation == "scale-up"
    assert logo.start_frame == 0


def test_build_config_skips_missing_certification(composition):
    """Test a product scene without a certification asset plans only the primary logo."""
    requirements = BrandRequirements(logo_required=True, product_mentioned=True)

    config = composition.build_config("scene_1", requirements, 5.0)

    assert [logo.logo_type for logo in config.logos] == [LogoType.PRIMARY]


def test_build_placements(composition):
    """Test planned logos resolve to pixel positions and frame windows."""
    requirements = BrandRequirements(logo_required=True, logo_type=LogoType.PRIMARY)
    config = composition.build_config("scene_1", requirements, 5.0)

    placements = composition.build_placements(config)

    assert len(placements) == 1
    placement = placements[0]
    assert placement.logo_url == "https://cdn.example.com/logo-primary.png"
    assert (placement.position.x, placement.position.y) == (1650, 925)
    assert placement.start_frame == 15
    assert placement.end_frame == 150


def test_build_placements_watermark_uses_default_size(composition):
    """Test a logo without intrinsic size falls back to a square default."""
    requirements = BrandRequirements(logo_required=True, logo_type=LogoType.WATERMARK)
    config = composition.build_config("scene_1", requirements, 2.0, fps=24)

    placement = composition.build_placements(config)[0]

    assert (placement.position.width, placement.position.height) == (154, 154)
    assert (placement.position.x, placement.position.y) == (1726, 886)
    assert placement.position.opacity == 0.5
    assert placement.end_frame == 48
