"""Tests for the overlay placement engine."""

import pytest

from brandscene.core.config import PlacementWeights, Settings
from brandscene.core.logging_config import get_logger
from brandscene.models.schemas import (
    FrameAnalysis,
    Overlay,
    OverlayAnimation,
    OverlayPlacement,
    OverlayPosition,
    OverlayTiming,
    OverlayType,
    Region,
    TextStyle,
)
from brandscene.services.overlay_placement import OverlayPlacementEngine


@pytest.fixture
def engine():
    """Create OverlayPlacementEngine instance for testing."""
    return OverlayPlacementEngine(Settings(), get_logger(__name__))


def _placement(overlay_id: str, x: float, y: float, start: int, end: int) -> OverlayPlacement:
    return OverlayPlacement(
        overlay=Overlay(id=overlay_id, text=overlay_id),
        position_name="custom",
        position=OverlayPosition(x=x, y=y, anchor="center"),
        timing=OverlayTiming(start_frame=start, end_frame=end),
        style=TextStyle(),
        animation=OverlayAnimation(enter="fade", exit="fade", duration_sec=0.3),
    )


def test_lower_third_default_position(engine):
    """Test a lower third lands in the lower third with its timing window."""
    overlays = [Overlay(id="o1", text="Dr. Jane Smith", type=OverlayType.LOWER_THIRD)]

    result = engine.calculate_placements(overlays, None, 5.0)

    placement = result.placements[0]
    assert placement.position_name == "lower-third"
    assert (placement.position.x, placement.position.y) == (50, 85)
    assert (placement.timing.start_frame, placement.timing.end_frame) == (24, 141)
    assert placement.animation.enter == "slide-up"
    assert placement.score == 80
    assert result.stats.unique_count == 1
    assert result.stats.skipped == 0


def test_face_blocks_position(engine):
    """Test a position covered by a face is avoided."""
    analysis = FrameAnalysis(faces=[Region(x=0.4, y=0.7, width=0.2, height=0.25)])
    overlays = [Overlay(id="o1", text="Dr. Jane Smith", type=OverlayType.LOWER_THIRD)]

    result = engine.calculate_placements(overlays, analysis, 5.0)

    assert result.placements[0].position_name == "bottom-left"
    score, reason = engine.score_position("lower-third", OverlayType.LOWER_THIRD, analysis, [])
    assert score == -20
    assert "BLOCKED BY FACE" in reason


def test_every_face_is_checked(engine):
    """Test faces beyond the first still block positions."""
    analysis = FrameAnalysis(
        faces=[
            Region(x=0.0, y=0.0, width=0.1, height=0.1),
            Region(x=0.45, y=0.8, width=0.1, height=0.1),
        ]
    )

    score, _ = engine.score_position("lower-third", OverlayType.LOWER_THIRD, analysis, [])

    assert score == -20


def test_safe_zone_grid_scoring(engine):
    """Test safe and busy grid cells shift the preferred position."""
    analysis = FrameAnalysis.from_safe_zone_grid(
        {"bottom_left": False, "bottom_center": True, "bottom_right": False, "top_right": True}
    )

    assert engine.score_position("lower-third", OverlayType.CAPTION, analysis, [])[0] == 85
    assert engine.score_position("bottom-center", OverlayType.CAPTION, analysis, [])[0] == 100

    result = engine.calculate_placements([Overlay(id="c1", text="Hello")], analysis, 4.0)
    assert result.placements[0].position_name == "bottom-center"


def test_duplicates_are_removed(engine):
    """Test overlays with the same text and type are placed once."""
    overlays = [
        Overlay(id="a", text="Shop now", type=OverlayType.CTA),
        Overlay(id="b", text="Shop now", type=OverlayType.CTA),
        Overlay(id="c", text="Shop now", type=OverlayType.CAPTION),
    ]

    result = engine.calculate_placements(overlays, None, 6.0)

    assert result.stats.unique_count == 2
    assert [p.overlay.id for p in result.placements] == ["a", "c"]


def test_second_overlay_avoids_the_first(engine):
    """Test proximity to an accepted overlay pushes the next one elsewhere."""
    overlays = [Overlay(id="c1", text="First"), Overlay(id="c2", text="Second")]

    result = engine.calculate_placements(overlays, None, 4.0)

    assert [p.position_name for p in result.placements] == ["lower-third", "bottom-left"]
    assert result.placements[1].placement_reason == "Default position"


def test_rejection_threshold_skips_overlay(logger):
    """Test an overlay is skipped when no position beats the threshold."""
    engine = OverlayPlacementEngine(Settings(placement_rejection_threshold=90), logger)

    result = engine.calculate_placements([Overlay(id="c1", text="Hello")], None, 4.0)

    assert result.placements == []
    assert result.stats.skipped == 1


def test_overlapping_windows_drop_late_overlay(logger):
    """Test an overlay with no free window left after delaying is skipped."""
    settings = Settings(placement_weights=PlacementWeights(overlay_proximity=0))
    engine = OverlayPlacementEngine(settings, logger)
    overlays = [Overlay(id="c1", text="First"), Overlay(id="c2", text="Second")]

    result = engine.calculate_placements(overlays, None, 3.0)

    assert [p.overlay.id for p in result.placements] == ["c1"]
    assert result.stats.skipped == 1


def test_resolve_overlaps_delays_conflicting_overlay(engine):
    """Test conflicting overlays get disjoint windows separated by the buffer."""
    placements = [
        _placement("late", 50, 85, 10, 100),
        _placement("early", 50, 85, 0, 30),
        _placement("far", 10, 10, 0, 100),
    ]

    kept, dropped = engine._resolve_overlaps(placements)

    assert dropped == 0
    assert [p.overlay.id for p in kept] == ["late", "early", "far"]
    assert kept[0].timing.start_frame == 40
    assert kept[1].timing.start_frame == 0
    assert kept[2].timing.start_frame == 0


@pytest.mark.parametrize(
    "overlay_type,window",
    [
        (OverlayType.TITLE, (9, 141)),
        (OverlayType.LOWER_THIRD, (24, 141)),
        (OverlayType.CTA, (75, 150)),
        (OverlayType.CAPTION, (15, 144)),
    ],
)
def test_calculate_timing(overlay_type, window):
    """Test per-type frame windows for a five second scene."""
    timing = OverlayPlacementEngine.calculate_timing(overlay_type, 5.0, 30)

    assert (timing.start_frame, timing.end_frame) == window


@pytest.mark.parametrize("duration", [0.5, 0.0])
def test_calculate_timing_short_scene(duration):
    """Test scenes shorter than the type offsets keep a non-empty window."""
    timing = OverlayPlacementEngine.calculate_timing(OverlayType.TITLE, duration, 30)

    assert timing.start_frame == 0
    assert timing.end_frame == max(1, round(duration * 30))


def test_short_scene_overlay_is_placed(engine):
    """Test a lone title in a half second scene is placed, not skipped."""
    result = engine.calculate_placements([Overlay(id="t1", text="Welcome", type=OverlayType.TITLE)], None, 0.5)

    assert result.stats.skipped == 0
    assert (result.placements[0].timing.start_frame, result.placements[0].timing.end_frame) == (0, 15)


def test_light_background_gets_plate():
    """Test plate-less styles get a dark plate on light backgrounds."""
    analysis = FrameAnalysis(dominant_colors=["Cream", "sage green"])

    title = OverlayPlacementEngine.style_for(OverlayType.TITLE, analysis)
    lower_third = OverlayPlacementEngine.style_for(OverlayType.LOWER_THIRD, analysis)
    plain = OverlayPlacementEngine.style_for(OverlayType.TITLE, FrameAnalysis())

    assert title.background_color == "rgba(0, 0, 0, 0.5)"
    assert title.padding == 12
    assert lower_third.background_color == "rgba(45, 90, 39, 0.85)"
    assert plain.background_color is None


def test_logo_overlay_prefers_right_corner(engine):
    """Test logo overlays go to the first of their preferred corners."""
    result = engine.calculate_placements([Overlay(id="l1", text="Logo", type=OverlayType.LOGO)], None, 5.0)

    assert result.placements[0].position_name == "bottom-right"


def test_get_position_coords(engine):
    coords = engine.get_position_coords()

    assert len(coords) == 10
    assert coords["lower-third"].y == 85
