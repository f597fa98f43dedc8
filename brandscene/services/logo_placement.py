"""
Logo Placement - logo asset selection, pixel placement and per-scene logo plans.

The calculator owns the geometry (size, named positions, safe-zone clamping and
product-region avoidance), the selector picks the best logo asset per logo type
and the composition service turns brand requirements into resolved placements.
"""

from typing import Any, Optional

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    AssetFilter,
    BrandAsset,
    BrandRequirements,
    Bounds,
    LogoCompositionConfig,
    LogoPlacement,
    LogoPosition,
    LogoPositionName,
    LogoSize,
    LogoType,
    ResolvedLogoPlacement,
    Visibility,
)
from brandscene.services.project_session import ProjectSession
from brandscene.utils.error_handler import RepositoryUnavailableError

# Logo width as a fraction of the canvas width
SIZE_MAP: dict[LogoSize, float] = {
    LogoSize.SMALL: 0.08,
    LogoSize.MEDIUM: 0.12,
    LogoSize.LARGE: 0.18,
    LogoSize.XLARGE: 0.25,
}

CORNERS = [
    LogoPositionName.BOTTOM_RIGHT,
    LogoPositionName.BOTTOM_LEFT,
    LogoPositionName.TOP_RIGHT,
    LogoPositionName.TOP_LEFT,
]

DEFAULT_LOGO_SIZE = (500, 500)


class LogoPlacementCalculator:
    """Computes logo pixel bounds on a canvas."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the calculator.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def calculate(
        self,
        placement: LogoPlacement,
        asset_size: tuple[int, int],
        config: LogoCompositionConfig,
    ) -> LogoPosition:
        """
        Compute the pixel position of one logo.

        Args:
            placement: Planned logo
            asset_size: Intrinsic (width, height) of the logo image
            config: Canvas, safe-zone margin and occupied product regions

        Returns:
            LogoPosition inside the safe zone, or flagged with
            constraint_violation / overlap_unresolved when that is impossible
        """
        width, height = self.calculate_size(placement, asset_size, config)
        x, y = self._named_position(placement, width, height, config)
        x, y, violation = self._clamp_to_safe_zone(x, y, width, height, config)

        overlap_unresolved = False
        if config.respect_product_regions and config.product_regions:
            x, y, overlap_unresolved = self._avoid_regions(
                placement, x, y, width, height, config, violation
            )

        return LogoPosition(
            x=x,
            y=y,
            width=width,
            height=height,
            opacity=self.resolve_opacity(placement.logo_type, placement.opacity),
            overlap_unresolved=overlap_unresolved,
            constraint_violation=violation,
        )

    def calculate_multiple(
        self,
        placements: list[LogoPlacement],
        asset_sizes: dict[str, tuple[int, int]],
        config: LogoCompositionConfig,
    ) -> dict[str, LogoPosition]:
        """
        Place several logos, treating every placed logo as occupied space for the next.

        Args:
            placements: Planned logos in priority order
            asset_sizes: Intrinsic sizes keyed by asset id (or logo type value)
            config: Canvas configuration

        Returns:
            Positions keyed like ``asset_sizes``; logos without a known size are skipped
        """
        results: dict[str, LogoPosition] = {}
        used_regions = list(config.product_regions)

        for placement in placements:
            key = placement.asset_id or placement.logo_type.value
            if key not in asset_sizes:
                self.logger.warning(f"No intrinsic size for logo {key}, skipping")
                continue

            scoped = config.model_copy(update={"product_regions": list(used_regions)})
            position = self.calculate(placement, asset_sizes[key], scoped)
            results[key] = position
            used_regions.append(position.bounds)

        return results

    def resolve_opacity(self, logo_type: LogoType, requested: float) -> float:
        """Watermarks never exceed the configured opacity ceiling."""
        if logo_type == LogoType.WATERMARK:
            return min(requested, self.settings.watermark_max_opacity)
        return requested

    @staticmethod
    def calculate_size(
        placement: LogoPlacement,
        asset_size: tuple[int, int],
        config: LogoCompositionConfig,
    ) -> tuple[int, int]:
        """Size relative to canvas width, aspect preserved, then clamped by max width and max height."""
        asset_width, asset_height = asset_size
        aspect = asset_width / asset_height if asset_width > 0 and asset_height > 0 else 1.0

        width = config.width * SIZE_MAP[placement.size]
        height = width / aspect

        if placement.max_width_percent:
            max_width = config.width * placement.max_width_percent / 100
            if width > max_width:
                width = max_width
                height = width / aspect

        if placement.max_height_percent:
            max_height = config.height * placement.max_height_percent / 100
            if height > max_height:
                height = max_height
                width = height * aspect

        return max(1, round(width)), max(1, round(height))

    @staticmethod
    def _named_position(
        placement: LogoPlacement, width: int, height: int, config: LogoCompositionConfig
    ) -> tuple[int, int]:
        m = config.safe_zone_margin
        fw = config.width
        fh = config.height

        if placement.position == LogoPositionName.CUSTOM and placement.custom_position:
            return (
                round(fw * placement.custom_position.x / 100 - width / 2),
                round(fh * placement.custom_position.y / 100 - height / 2),
            )

        positions = {
            LogoPositionName.TOP_LEFT: (m, m),
            LogoPositionName.TOP_CENTER: ((fw - width) / 2, m),
            LogoPositionName.TOP_RIGHT: (fw - width - m, m),
            LogoPositionName.CENTER_LEFT: (m, (fh - height) / 2),
            LogoPositionName.CENTER: ((fw - width) / 2, (fh - height) / 2),
            LogoPositionName.CENTER_RIGHT: (fw - width - m, (fh - height) / 2),
            LogoPositionName.BOTTOM_LEFT: (m, fh - height - m),
            LogoPositionName.BOTTOM_CENTER: ((fw - width) / 2, fh - height - m),
            LogoPositionName.BOTTOM_RIGHT: (fw - width - m, fh - height - m),
            LogoPositionName.LOWER_THIRD_LEFT: (m * 2, fh * 0.75 - height / 2),
            LogoPositionName.LOWER_THIRD_RIGHT: (fw - width - m * 2, fh * 0.75 - height / 2),
        }
        x, y = positions.get(placement.position, positions[LogoPositionName.BOTTOM_RIGHT])
        return round(x), round(y)

    @staticmethod
    def _clamp_axis(value: int, size: int, extent: int, margin: int) -> tuple[int, bool]:
        low = margin
        high = extent - size - margin
        if high < low:
            # Does not fit inside the margins: centre it and keep it on canvas
            return max(0, round((extent - size) / 2)), True
        return min(max(value, low), high), False

    def _clamp_to_safe_zone(
        self, x: int, y: int, width: int, height: int, config: LogoCompositionConfig
    ) -> tuple[int, int, bool]:
        m = config.safe_zone_margin
        x, x_violation = self._clamp_axis(x, width, config.width, m)
        y, y_violation = self._clamp_axis(y, height, config.height, m)
        if x_violation or y_violation:
            self.logger.warning(
                f"Logo {width}x{height} does not fit the safe zone of a "
                f"{config.width}x{config.height} canvas with margin {m}"
            )
        return x, y, x_violation or y_violation

    def _avoid_regions(
        self,
        placement: LogoPlacement,
        x: int,
        y: int,
        width: int,
        height: int,
        config: LogoCompositionConfig,
        violation: bool,
    ) -> tuple[int, int, bool]:
        if not self._overlaps_any(Bounds(x=x, y=y, width=width, height=height), config.product_regions):
            return x, y, False

        for corner in self._corner_order(x, y, width, height, config):
            candidate = self._named_position(
                placement.model_copy(update={"position": corner}), width, height, config
            )
            cx, cy, _ = self._clamp_to_safe_zone(candidate[0], candidate[1], width, height, config)
            bounds = Bounds(x=cx, y=cy, width=width, height=height)
            if not self._overlaps_any(bounds, config.product_regions):
                self.logger.debug(f"Moved {placement.logo_type.value} logo to {corner.value} to clear product regions")
                return cx, cy, False

        self.logger.warning(
            f"{placement.logo_type.value} logo at {placement.position.value} still overlaps a product region"
            + (" (safe zone already violated)" if violation else "")
        )
        return x, y, True

    @staticmethod
    def _corner_order(
        x: int, y: int, width: int, height: int, config: LogoCompositionConfig
    ) -> list[LogoPositionName]:
        """Opposite corner first, then the remaining corners."""
        in_left = x + width / 2 < config.width / 2
        in_top = y + height / 2 < config.height / 2

        if in_left and in_top:
            opposite = LogoPositionName.BOTTOM_RIGHT
        elif in_top:
            opposite = LogoPositionName.BOTTOM_LEFT
        elif in_left:
            opposite = LogoPositionName.TOP_RIGHT
        else:
            opposite = LogoPositionName.TOP_LEFT

        return [opposite] + [corner for corner in CORNERS if corner != opposite]

    @staticmethod
    def _overlaps_any(bounds: Bounds, regions: list[Bounds]) -> bool:
        return any(bounds.intersects(region) for region in regions)


# ============================================================================
# Logo Asset Selection
# ============================================================================

LOGO_TYPE_KEYWORDS: dict[LogoType, list[str]] = {
    LogoType.PRIMARY: ["logo", "primary"],
    LogoType.WATERMARK: ["watermark", "overlay"],
    LogoType.CERTIFICATION: ["usda", "organic", "certification", "certified"],
    LogoType.PARTNER: ["association", "society", "institute", "partner", "functional medicine"],
}

# (name cue, bonus) per logo type
LOGO_NAME_BONUSES: dict[LogoType, list[tuple[str, int]]] = {
    LogoType.PRIMARY: [("primary", 50), ("main", 30)],
    LogoType.WATERMARK: [("watermark", 50), ("overlay", 30), ("subtle", 20)],
    LogoType.CERTIFICATION: [("usda", 50), ("organic", 40), ("certified", 30)],
    LogoType.PARTNER: [("society", 50), ("functional medicine", 40), ("partner", 30)],
}


class LogoAssetSelector:
    """Picks the best logo asset for a logo type, cached per project session."""

    def __init__(self, settings: Settings, logger: Any, repository: Any, session: ProjectSession):
        """
        Initialize the selector.

        Args:
            settings: Application settings
            logger: Logger instance
            repository: Asset repository port (``query_assets``)
            session: Caller-owned project session holding the logo cache
        """
        self.settings = settings
        self.logger = logger
        self.repository = repository
        self.session = session

    def select_logo(self, logo_type: LogoType, preferred_name: Optional[str] = None) -> Optional[BrandAsset]:
        """
        Select the best logo of a type.

        Args:
            logo_type: Requested logo type
            preferred_name: Name fragment that wins over every other cue

        Returns:
            Selected asset, or None when no candidate exists or the repository is down
        """
        cache_key = f"{logo_type.value}-{preferred_name or 'default'}"
        cached = self.session.get_cached_logo(cache_key)
        if cached is not None:
            return cached

        keywords = list(LOGO_TYPE_KEYWORDS[logo_type])
        if logo_type == LogoType.PRIMARY:
            keywords.extend(self.settings.brand_names)

        try:
            candidates = self.repository.query_assets(
                AssetFilter(types=keywords, keywords_any=keywords, name_contains=keywords)
            )
        except RepositoryUnavailableError as e:
            self.logger.warning(f"Logo lookup for {logo_type.value} failed: {e}")
            return None

        if not candidates:
            self.logger.info(f"No {logo_type.value} logo assets available")
            return None

        ranked = sorted(
            candidates,
            key=lambda asset: self._score(asset, logo_type, preferred_name),
            reverse=True,
        )
        selected = ranked[0]
        self.session.cache_logo(cache_key, selected)
        self.logger.info(f"✅ Selected {logo_type.value} logo: {selected.name or selected.id}")
        return selected

    def select_multiple(self, logo_types: list[LogoType]) -> dict[LogoType, BrandAsset]:
        selected = {}
        for logo_type in logo_types:
            asset = self.select_logo(logo_type)
            if asset is not None:
                selected[logo_type] = asset
        return selected

    def _score(self, asset: BrandAsset, logo_type: LogoType, preferred_name: Optional[str]) -> int:
        name = asset.name.lower()
        score = 0

        if preferred_name and preferred_name.lower() in name:
            score += 100

        for cue, bonus in LOGO_NAME_BONUSES[logo_type]:
            if cue in name:
                score += bonus

        if logo_type == LogoType.PRIMARY:
            if "logo" in name and any(brand in name for brand in self.settings.brand_names):
                score += 40
            if asset.is_default:
                score += 25

        if asset.category == "logo" or "logo" in (asset.asset_type or ""):
            score += 20
        if "png" in (asset.mime_type or "").lower() or asset.url.lower().endswith(".png"):
            score += 15

        return score + asset.priority * 5


# ============================================================================
# Logo Composition Plans
# ============================================================================


class LogoCompositionService:
    """Builds per-scene logo plans and resolves them to pixel placements."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        selector: LogoAssetSelector,
        calculator: Optional[LogoPlacementCalculator] = None,
    ):
        """
        Initialize the service.

        Args:
            settings: Application settings
            logger: Logger instance
            selector: Logo asset selector
            calculator: Placement calculator (created from settings when omitted)
        """
        self.settings = settings
        self.logger = logger
        self.selector = selector
        self.calculator = calculator or LogoPlacementCalculator(settings, logger)
        self._assets: dict[str, BrandAsset] = {}

    def build_config(
        self,
        scene_id: str,
        requirements: BrandRequirements,
        scene_duration: float,
        fps: Optional[int] = None,
        product_regions: Optional[list[Bounds]] = None,
    ) -> LogoCompositionConfig:
        """
        Plan the logos of one scene.

        Args:
            scene_id: Scene identifier
            requirements: Analyzed brand requirements
            scene_duration: Scene length in seconds
            fps: Frames per second (settings default when omitted)
            product_regions: Occupied product regions from the composition

        Returns:
            LogoCompositionConfig with one placement per selected logo
        """
        logos: list[LogoPlacement] = []

        if requirements.logo_required:
            logo_type = requirements.logo_type or LogoType.PRIMARY

            if logo_type in (LogoType.PRIMARY, LogoType.PARTNER):
                primary = self._plan(LogoType.PRIMARY, self._primary_placement(requirements.branding_visibility))
                if primary:
                    logos.append(primary)

            if logo_type == LogoType.WATERMARK:
                watermark = self._plan(
                    LogoType.WATERMARK,
                    dict(
                        position=LogoPositionName.BOTTOM_RIGHT,
                        size=LogoSize.SMALL,
                        opacity=0.5,
                        animation="fade-in",
                        animation_duration=20,
                        start_frame=30,
                    ),
                )
                if watermark:
                    logos.append(watermark)

            if logo_type == LogoType.PARTNER:
                partner = self._plan(
                    LogoType.PARTNER,
                    dict(
                        position=LogoPositionName.LOWER_THIRD_RIGHT,
                        size=LogoSize.SMALL,
                        opacity=0.85,
                        animation="slide-in",
                        animation_duration=20,
                        start_frame=60,
                    ),
                )
                if partner:
                    logos.append(partner)

        if requirements.product_mentioned or requirements.logo_type == LogoType.CERTIFICATION:
            certification = self._plan(
                LogoType.CERTIFICATION,
                dict(
                    position=LogoPositionName.BOTTOM_LEFT,
                    size=LogoSize.SMALL,
                    opacity=0.9,
                    animation="fade-in",
                    animation_duration=15,
                    start_frame=45,
                ),
            )
            if certification:
                logos.append(certification)

        config = LogoCompositionConfig(
            scene_id=scene_id,
            scene_duration=scene_duration,
            fps=fps or self.settings.default_fps,
            width=self.settings.output_width,
            height=self.settings.output_height,
            logos=logos,
            safe_zone_margin=self.settings.safe_zone_margin,
            product_regions=product_regions or [],
        )
        self.logger.info(f"Planned {len(logos)} logo(s) for scene {scene_id}")
        return config

    def build_placements(self, config: LogoCompositionConfig) -> list[ResolvedLogoPlacement]:
        """
        Resolve planned logos to pixel positions and frame windows.

        Args:
            config: Logo plan from ``build_config``

        Returns:
            Resolved placements in plan order; logos without a URL are skipped
        """
        sizes: dict[str, tuple[int, int]] = {}
        for placement in config.logos:
            key = placement.asset_id or placement.logo_type.value
            asset = self._assets.get(key)
            if asset and asset.width and asset.height:
                sizes[key] = (asset.width, asset.height)
            else:
                sizes[key] = DEFAULT_LOGO_SIZE

        positions = self.calculator.calculate_multiple(config.logos, sizes, config)
        scene_end = round(config.scene_duration * config.fps)

        resolved = []
        for placement in config.logos:
            key = placement.asset_id or placement.logo_type.value
            if key not in positions or not placement.asset_url:
                continue
            resolved.append(
                ResolvedLogoPlacement(
                    logo_type=placement.logo_type,
                    logo_url=placement.asset_url,
                    position=positions[key],
                    animation=placement.animation,
                    animation_duration=placement.animation_duration,
                    animation_delay=placement.animation_delay,
                    start_frame=min(placement.start_frame, scene_end),
                    end_frame=placement.end_frame if placement.end_frame is not None else scene_end,
                )
            )
        return resolved

    @staticmethod
    def _primary_placement(visibility: Visibility) -> dict[str, Any]:
        if visibility == Visibility.PROMINENT:
            return dict(
                position=LogoPositionName.TOP_LEFT,
                size=LogoSize.LARGE,
                opacity=1.0,
                animation="scale-up",
                animation_duration=20,
                start_frame=0,
            )
        return dict(
            position=LogoPositionName.BOTTOM_RIGHT,
            size=LogoSize.MEDIUM,
            opacity=0.9,
            animation="fade-in",
            animation_duration=15,
            start_frame=15,
        )

    def _plan(self, logo_type: LogoType, options: dict[str, Any]) -> Optional[LogoPlacement]:
        asset = self.selector.select_logo(logo_type)
        if asset is None:
            return None
        self._assets[asset.id] = asset
        return LogoPlacement(logo_type=logo_type, asset_id=asset.id, asset_url=asset.url, **options)
