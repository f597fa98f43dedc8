"""Overlay Placement Engine - scores grid positions and time windows for text and logo overlays."""

from typing import Any, Optional

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    FrameAnalysis,
    Overlay,
    OverlayAnimation,
    OverlayPlacement,
    OverlayPlacementResult,
    OverlayPosition,
    OverlayTiming,
    OverlayType,
    PlacementStats,
    Region,
    TextStyle,
)

POSITION_COORDS: dict[str, tuple[float, float, str]] = {
    "lower-third": (50, 85, "bottom-center"),
    "bottom-left": (10, 90, "bottom-left"),
    "bottom-center": (50, 92, "bottom-center"),
    "bottom-right": (90, 90, "bottom-right"),
    "top-center": (50, 15, "top-center"),
    "top-left": (10, 10, "top-left"),
    "top-right": (90, 10, "top-right"),
    "center": (50, 50, "center"),
    "middle-left": (15, 50, "middle-left"),
    "middle-right": (85, 50, "middle-right"),
}

PREFERRED_POSITIONS: dict[OverlayType, list[str]] = {
    OverlayType.LOWER_THIRD: ["lower-third", "bottom-left", "bottom-right"],
    OverlayType.TITLE: ["center", "top-center"],
    OverlayType.SUBTITLE: ["center", "bottom-center"],
    OverlayType.CAPTION: ["bottom-center", "lower-third"],
    OverlayType.CTA: ["center", "bottom-center"],
    OverlayType.LOGO: ["top-right", "bottom-right"],
}

BOTTOM_POSITIONS = ("bottom-left", "bottom-center", "bottom-right")

DEFAULT_STYLES: dict[OverlayType, TextStyle] = {
    OverlayType.LOWER_THIRD: TextStyle(
        font_size=32,
        font_weight="semibold",
        background_color="rgba(45, 90, 39, 0.85)",
        padding=16,
        border_radius=4,
        shadow=True,
    ),
    OverlayType.TITLE: TextStyle(font_size=48, font_weight="bold", shadow=True),
    OverlayType.SUBTITLE: TextStyle(font_size=24, shadow=True),
    OverlayType.CAPTION: TextStyle(
        font_size=20,
        background_color="rgba(0, 0, 0, 0.6)",
        padding=8,
        border_radius=4,
    ),
    OverlayType.CTA: TextStyle(
        font_size=36,
        font_weight="bold",
        background_color="#D4A574",
        padding=20,
        border_radius=8,
        shadow=True,
    ),
}

ANIMATIONS: dict[OverlayType, OverlayAnimation] = {
    OverlayType.LOWER_THIRD: OverlayAnimation(enter="slide-up", exit="fade", duration_sec=0.4),
    OverlayType.TITLE: OverlayAnimation(enter="fade", exit="fade", duration_sec=0.6),
    OverlayType.SUBTITLE: OverlayAnimation(enter="fade", exit="fade", duration_sec=0.4),
    OverlayType.CAPTION: OverlayAnimation(enter="fade", exit="fade", duration_sec=0.3),
    OverlayType.CTA: OverlayAnimation(enter="pop", exit="fade", duration_sec=0.5),
    OverlayType.LOGO: OverlayAnimation(enter="fade", exit="fade", duration_sec=0.5),
}

LIGHT_COLOR_NAMES = ("white", "cream", "beige", "yellow")


class OverlayPlacementEngine:
    """Chooses a non-conflicting position and frame window for each overlay of a scene."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the placement engine.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.weights = settings.placement_weights

    def calculate_placements(
        self,
        overlays: list[Overlay],
        frame_analysis: Optional[FrameAnalysis],
        scene_duration_sec: float,
        fps: Optional[int] = None,
    ) -> OverlayPlacementResult:
        """
        Place the overlays of one scene.

        Duplicates (same text and type) are removed first. Each overlay then takes
        its best scoring grid position; an overlay whose best score does not beat
        the rejection threshold is skipped rather than placed badly. Finally
        overlays sharing screen space get disjoint frame windows.

        Args:
            overlays: Overlays in priority order
            frame_analysis: Upstream frame analysis (None means nothing is known)
            scene_duration_sec: Scene length in seconds
            fps: Frames per second (settings default when omitted)

        Returns:
            OverlayPlacementResult with accepted placements and unique/skipped counts
        """
        fps = fps or self.settings.default_fps
        analysis = frame_analysis or FrameAnalysis()
        unique = self._deduplicate(overlays)
        placements: list[OverlayPlacement] = []
        skipped = 0

        for overlay in unique:
            best = self._find_best_position(overlay.type, analysis, placements)
            if best is None:
                self.logger.warning(f"No acceptable position for overlay {overlay.id}: {overlay.text[:30]!r}")
                skipped += 1
                continue

            position_name, score, reason = best
            x, y, anchor = POSITION_COORDS[position_name]
            placements.append(
                OverlayPlacement(
                    overlay=overlay,
                    position_name=position_name,
                    position=OverlayPosition(x=x, y=y, anchor=anchor),
                    timing=self.calculate_timing(overlay.type, scene_duration_sec, fps),
                    style=self.style_for(overlay.type, analysis),
                    animation=ANIMATIONS.get(overlay.type, ANIMATIONS[OverlayType.CAPTION]).model_copy(),
                    placement_reason=reason,
                    score=score,
                )
            )

        placements, dropped = self._resolve_overlaps(placements)
        skipped += dropped

        self.logger.info(f"Placed {len(placements)} overlay(s), skipped {skipped} of {len(unique)} unique")
        return OverlayPlacementResult(
            placements=placements,
            stats=PlacementStats(unique_count=len(unique), skipped=skipped),
        )

    # =========================================================================
    # Position scoring
    # =========================================================================

    def _deduplicate(self, overlays: list[Overlay]) -> list[Overlay]:
        seen: set[tuple[str, OverlayType]] = set()
        unique = []
        for overlay in overlays:
            key = (overlay.text, overlay.type)
            if key in seen:
                self.logger.debug(f"Duplicate overlay removed: {overlay.text[:30]!r}")
                continue
            seen.add(key)
            unique.append(overlay)
        return unique

    def score_position(
        self,
        position_name: str,
        overlay_type: OverlayType,
        analysis: FrameAnalysis,
        placed: list[OverlayPlacement],
    ) -> tuple[float, str]:
        """
        Score one grid position for an overlay type.

        Returns:
            (score, human-readable reason)
        """
        w = self.weights
        x, y, _ = POSITION_COORDS[position_name]
        score = w.base
        reasons = []

        if position_name in PREFERRED_POSITIONS.get(overlay_type, ["lower-third"]):
            score += w.preferred
            reasons.append(f"Preferred for {overlay_type.value}")

        if position_name in analysis.safe_positions:
            score += w.safe_zone
            reasons.append("safe zone")

        if any(self._overlaps_face(x, y, face) for face in analysis.faces):
            score += w.face_overlap
            reasons.append("BLOCKED BY FACE")

        if position_name in analysis.busy_regions:
            score += w.busy_region
            reasons.append("busy area")

        if position_name == "lower-third" and any(p in analysis.busy_regions for p in BOTTOM_POSITIONS):
            score += w.lower_third_busy
            reasons.append("lower area busy")

        for existing in placed:
            if self._is_close(x, y, existing.position.x, existing.position.y):
                score += w.overlay_proximity
                reasons.append("overlay overlap")

        reason = ", ".join(reasons) or "Default position"
        return score, reason[:1].upper() + reason[1:]

    def _find_best_position(
        self,
        overlay_type: OverlayType,
        analysis: FrameAnalysis,
        placed: list[OverlayPlacement],
    ) -> Optional[tuple[str, float, str]]:
        best: Optional[tuple[str, float, str]] = None
        for position_name in POSITION_COORDS:
            if not self._inside_safe_zone(position_name):
                continue
            score, reason = self.score_position(position_name, overlay_type, analysis, placed)
            self.logger.debug(f"{overlay_type.value} @ {position_name}: {score}")
            if best is None or score > best[1]:
                best = (position_name, score, reason)

        if best is None or best[1] <= self.settings.placement_rejection_threshold:
            return None
        return best

    def _inside_safe_zone(self, position_name: str) -> bool:
        """Anchor point must sit inside the safe-zone margin of the output canvas."""
        x, y, _ = POSITION_COORDS[position_name]
        m = self.settings.safe_zone_margin
        px = self.settings.output_width * x / 100
        py = self.settings.output_height * y / 100
        return m <= px <= self.settings.output_width - m and m <= py <= self.settings.output_height - m

    def _overlaps_face(self, x: float, y: float, face: Region) -> bool:
        px = x / 100
        py = y / 100
        padding = self.weights.face_padding
        return (
            face.x - padding <= px <= face.x + face.width + padding
            and face.y - padding <= py <= face.y + face.height + padding
        )

    def _is_close(self, x1: float, y1: float, x2: float, y2: float) -> bool:
        return abs(x1 - x2) < self.weights.close_dx_percent and abs(y1 - y2) < self.weights.close_dy_percent

    # =========================================================================
    # Style, timing and overlap resolution
    # =========================================================================

    @staticmethod
    def style_for(overlay_type: OverlayType, analysis: FrameAnalysis) -> TextStyle:
        """Default style for the type, with a translucent dark plate on light backgrounds."""
        style = DEFAULT_STYLES.get(overlay_type, DEFAULT_STYLES[OverlayType.CAPTION]).model_copy()

        is_light = analysis.lighting_type == "warm" or any(
            light in color.lower() for color in analysis.dominant_colors for light in LIGHT_COLOR_NAMES
        )
        if is_light and not style.background_color:
            style.shadow = True
            style.background_color = "rgba(0, 0, 0, 0.5)"
            style.padding = style.padding or 12
        return style

    @staticmethod
    def calculate_timing(overlay_type: OverlayType, scene_duration_sec: float, fps: int) -> OverlayTiming:
        """Frame window per overlay type. Scenes too short for the offsets show the overlay throughout."""
        total_frames = max(1, round(scene_duration_sec * fps))

        if overlay_type == OverlayType.TITLE:
            start, end = round(fps * 0.3), total_frames - round(fps * 0.3)
        elif overlay_type == OverlayType.LOWER_THIRD:
            start, end = round(fps * 0.8), total_frames - round(fps * 0.3)
        elif overlay_type == OverlayType.CTA:
            start, end = round(total_frames * 0.5), total_frames
        else:
            start, end = round(fps * 0.5), total_frames - round(fps * 0.2)

        if end <= start:
            start, end = 0, total_frames
        return OverlayTiming(start_frame=start, end_frame=end)

    def _resolve_overlaps(self, placements: list[OverlayPlacement]) -> tuple[list[OverlayPlacement], int]:
        """
        Give overlays that share screen space disjoint frame windows.

        Overlays are settled in start order; a conflicting overlay is pushed to
        start after the other one ends plus the frame buffer. An overlay pushed
        past its own end no longer fits the scene and is dropped.

        Returns:
            (surviving placements in their original order, number dropped)
        """
        buffer = self.settings.overlap_frame_buffer
        order = sorted(range(len(placements)), key=lambda i: (placements[i].timing.start_frame, i))
        settled: list[int] = []
        dropped = 0

        for i in order:
            timing = placements[i].timing
            moved = True
            while moved and timing.start_frame < timing.end_frame:
                moved = False
                for j in settled:
                    other = placements[j]
                    if not self._is_close(
                        placements[i].position.x, placements[i].position.y, other.position.x, other.position.y
                    ):
                        continue
                    if timing.start_frame < other.timing.end_frame and other.timing.start_frame < timing.end_frame:
                        timing.start_frame = other.timing.end_frame + buffer
                        moved = True
                        self.logger.debug(
                            f"Delayed overlay {placements[i].overlay.id} to frame {timing.start_frame}"
                        )

            if timing.start_frame >= timing.end_frame:
                self.logger.warning(
                    f"Overlay {placements[i].overlay.id} has no free time window left, skipping"
                )
                dropped += 1
                continue
            settled.append(i)

        kept = sorted(settled)
        return [placements[i] for i in kept], dropped

    def get_position_coords(self) -> dict[str, OverlayPosition]:
        return {name: OverlayPosition(x=x, y=y, anchor=anchor) for name, (x, y, anchor) in POSITION_COORDS.items()}
