"""Pydantic models and schemas for the scene composition and placement engine."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================


class SceneType(str, Enum):
    """How brand material participates in a scene."""

    STANDARD = "standard"
    PRODUCT_HERO = "product-hero"
    PRODUCT_IN_CONTEXT = "product-in-context"
    BRANDED_ENVIRONMENT = "branded-environment"


class Visibility(str, Enum):
    """Requested visibility of a product or of the branding."""

    BACKGROUND = "background"
    SUBTLE = "subtle"
    VISIBLE = "visible"
    FEATURED = "featured"
    PROMINENT = "prominent"


class LogoType(str, Enum):
    """Kind of logo asset a scene asks for."""

    PRIMARY = "primary"
    WATERMARK = "watermark"
    CERTIFICATION = "certification"
    PARTNER = "partner"


class OutputType(str, Enum):
    """Whether the scene ends up as a still image or a video clip."""

    IMAGE = "image"
    VIDEO = "video"


class MotionStyle(str, Enum):
    """Camera / scene motion style for image-to-video animation."""

    STATIC = "static"
    SUBTLE = "subtle"
    ENVIRONMENTAL = "environmental"
    REVEAL = "reveal"
    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    PAN = "pan"


class AssetCategory(str, Enum):
    """Categories kept in a matched asset set."""

    PRODUCT = "product"
    LOGO = "logo"
    LOCATION = "location"


class AssetPurpose(str, Enum):
    """Purpose used when asking the matcher for a single best asset."""

    PRODUCT_HERO = "product-hero"
    LOGO_OVERLAY = "logo-overlay"
    WATERMARK = "watermark"
    PRODUCT_GROUP = "product-group"
    LOCATION = "location"


class WorkflowPath(str, Enum):
    """The six production strategies a scene can be routed to."""

    STANDARD = "standard"
    PRODUCT_IMAGE = "product-image"
    PRODUCT_VIDEO = "product-video"
    PRODUCT_HERO = "product-hero"
    BRAND_ASSET_DIRECT = "brand-asset-direct"
    LOGO_OVERLAY_ONLY = "logo-overlay-only"


class QualityImpact(str, Enum):
    """Expected quality impact of a workflow path compared to plain generation."""

    HIGHER = "higher"
    SAME = "same"
    LOWER = "lower"


class ProductAnchor(str, Enum):
    """Vertical anchor used to interpret a product's percentage position."""

    TOP_CENTER = "top-center"
    CENTER = "center"
    BOTTOM_CENTER = "bottom-center"


class FlipMode(str, Enum):
    """Mirror applied to a product layer."""

    NONE = "none"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class LogoPositionName(str, Enum):
    """Named logo positions on the canvas."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    CENTER_LEFT = "center-left"
    CENTER = "center"
    CENTER_RIGHT = "center-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"
    LOWER_THIRD_LEFT = "lower-third-left"
    LOWER_THIRD_RIGHT = "lower-third-right"
    CUSTOM = "custom"


class LogoSize(str, Enum):
    """Logo width relative to the canvas width."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"


class OverlayType(str, Enum):
    """Ephemeral overlay kinds handled by the placement engine."""

    LOWER_THIRD = "lower_third"
    TITLE = "title"
    SUBTITLE = "subtitle"
    CAPTION = "caption"
    CTA = "cta"
    LOGO = "logo"


# ============================================================================
# Scene & Requirement Models
# ============================================================================


class SceneDescriptor(BaseModel):
    """A single scene as handed over by the caller."""

    model_config = ConfigDict(frozen=True)

    scene_id: str = Field(..., description="Unique scene identifier")
    visual_direction: str = Field(..., description="Free-text visual direction for the scene")
    narration: str = Field(default="", description="Narration spoken over the scene")
    duration_seconds: float = Field(default=5.0, gt=0, description="Scene length in seconds")
    frame_rate: int = Field(default=30, gt=0, description="Frames per second")
    scene_type: Optional[str] = Field(default=None, description="Optional script role (hook, problem, solution, ...)")
    output_type: OutputType = Field(default=OutputType.VIDEO, description="Requested output medium")


class BrandRequirements(BaseModel):
    """Brand material a scene needs, derived from its text."""

    model_config = ConfigDict(frozen=True)

    product_mentioned: bool = Field(default=False, description="A product or product keyword is mentioned")
    product_names: list[str] = Field(default_factory=list, description="Known product names found in the text")
    product_visibility: Visibility = Field(default=Visibility.VISIBLE, description="Requested product visibility")
    logo_required: bool = Field(default=False, description="A logo or branding cue is present")
    logo_type: Optional[LogoType] = Field(default=None, description="Requested logo type, if any")
    branding_visibility: Visibility = Field(default=Visibility.VISIBLE, description="Requested branding visibility")
    scene_type: SceneType = Field(default=SceneType.STANDARD, description="Derived scene type")
    output_type: OutputType = Field(default=OutputType.VIDEO, description="Image or video output")
    motion_style: MotionStyle = Field(default=MotionStyle.SUBTLE, description="Coarse motion intent")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Weighted signal confidence (0.0-1.0)")
    requires_brand_assets: bool = Field(default=False, description="Confidence is high enough to use brand assets")
    signals: list[str] = Field(default_factory=list, description="Keyword signals that fired during analysis")


# ============================================================================
# Asset Models
# ============================================================================


class BrandAsset(BaseModel):
    """A snapshot of a stored brand asset."""

    id: str = Field(..., description="Repository identifier")
    url: str = Field(..., description="Public URL of the asset")
    name: str = Field(default="", description="Human-readable name")
    description: str = Field(default="", description="Free-text description")
    asset_type: Optional[str] = Field(default=None, description="Taxonomy type id (e.g. 'logo-primary-color')")
    category: Optional[str] = Field(default=None, description="Asset category (product, logo, location, ...)")
    keywords: list[str] = Field(default_factory=list, description="Match keywords")
    priority: int = Field(default=0, ge=0, description="Explicit ranking nudge")
    is_default: bool = Field(default=False, description="Default asset for its category")
    mime_type: Optional[str] = Field(default=None, description="MIME type of the stored file")
    entity_type: Optional[str] = Field(default=None, description="Structured entity type (product, location, ...)")
    entity_name: Optional[str] = Field(default=None, description="Structured entity name (product or brand name)")
    is_active: bool = Field(default=True, description="Inactive assets are never matched")
    width: Optional[int] = Field(default=None, description="Intrinsic width in pixels, if known")
    height: Optional[int] = Field(default=None, description="Intrinsic height in pixels, if known")

    def searchable_text(self, include_keywords: bool = True) -> str:
        """Lower-cased concatenation of name, description, keywords and entity name."""
        parts = [self.name, self.description]
        if include_keywords:
            parts.append(" ".join(self.keywords))
        parts.append(self.entity_name or "")
        return " ".join(parts).lower()

    @property
    def is_transparent_format(self) -> bool:
        """True for formats that carry an alpha channel (png, webp)."""
        mime = (self.mime_type or "").lower()
        url = self.url.lower().split("?")[0]
        return "png" in mime or "webp" in mime or url.endswith(".png") or url.endswith(".webp")


class AssetFilter(BaseModel):
    """
    Repository query filter.

    All provided criteria are combined with an inclusive OR so assets with
    incomplete metadata are never silently dropped. ``active_only`` is the
    only criterion applied with AND.
    """

    types: Optional[list[str]] = Field(default=None, description="Taxonomy types (substring match on asset_type)")
    category: Optional[str] = Field(default=None, description="Asset category")
    keywords_any: Optional[list[str]] = Field(default=None, description="Any of these match keywords")
    name_contains: Optional[list[str]] = Field(default=None, description="Any of these substrings in the name")
    entity_types: Optional[list[str]] = Field(default=None, description="Structured entity types")
    active_only: bool = Field(default=True, description="Only return active assets")

    @property
    def has_criteria(self) -> bool:
        return any([self.types, self.category, self.keywords_any, self.name_contains, self.entity_types])


class AssetMatch(BaseModel):
    """A scored asset candidate."""

    asset: BrandAsset = Field(..., description="Matched asset")
    score: int = Field(..., ge=0, description="Accumulated match score")
    matched_keywords: list[str] = Field(default_factory=list, description="Keywords that contributed to the score")
    match_reason: str = Field(default="", description="Human-readable explanation of the score")
    match_type: str = Field(default="keyword", description="exact, type, keyword or context")


class MatchedAssetSet(BaseModel):
    """Score-sorted brand assets for one scene, grouped by category."""

    products: list[AssetMatch] = Field(default_factory=list, description="Product matches (at most 5)")
    logos: list[AssetMatch] = Field(default_factory=list, description="Logo matches (at most 3)")
    locations: list[AssetMatch] = Field(default_factory=list, description="Location matches (at most 3)")
    error: Optional[str] = Field(default=None, description="Set when matching degraded because of an I/O failure")

    @property
    def is_empty(self) -> bool:
        return not (self.products or self.logos or self.locations)


class TaxonomyType(BaseModel):
    """A declared asset type carrying its prompt keywords."""

    id: str = Field(..., description="Type identifier (e.g. 'products-hero')")
    category: str = Field(..., description="Category the type belongs to")
    label: str = Field(default="", description="Display label")
    prompt_keywords: list[str] = Field(default_factory=list, description="Keywords that select this type from text")


class CategoryMatchGroup(BaseModel):
    """Taxonomy-mode matches for one category."""

    category: str = Field(..., description="Category name")
    total_score: int = Field(..., description="Aggregate score of all matches in the category")
    matches: list[AssetMatch] = Field(default_factory=list, description="Score-sorted matches")


class GroupedAssetMatches(BaseModel):
    """Result of the taxonomy-driven full-text matching mode."""

    matched_types: list[str] = Field(default_factory=list, description="Resolved taxonomy types, most specific first")
    groups: list[CategoryMatchGroup] = Field(default_factory=list, description="Categories ranked by aggregate score")
    error: Optional[str] = Field(default=None, description="Set when matching degraded because of an I/O failure")

    def get(self, category: str) -> list[AssetMatch]:
        for group in self.groups:
            if group.category == category:
                return group.matches
        return []


# ============================================================================
# Workflow Models
# ============================================================================


class WorkflowStep(BaseModel):
    """One step of a workflow path."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Step name")
    service: str = Field(..., description="Collaborator responsible for the step")
    input: str = Field(..., description="Step input")
    output: str = Field(..., description="Step output")
    optional: bool = Field(default=False, description="Step may be skipped")


class WorkflowDecision(BaseModel):
    """The routed production strategy for a scene."""

    model_config = ConfigDict(frozen=True)

    path: WorkflowPath = Field(..., description="Selected workflow path")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Requirement confidence")
    steps: list[WorkflowStep] = Field(default_factory=list, description="Ordered execution steps")
    reasons: list[str] = Field(default_factory=list, description="Diagnostic reason trail")
    quality_impact: QualityImpact = Field(default=QualityImpact.SAME, description="Expected quality impact")
    cost_multiplier: float = Field(default=1.0, ge=1.0, description="Relative cost versus plain generation")


# ============================================================================
# Geometry
# ============================================================================


class Bounds(BaseModel):
    """Pixel rectangle (top-left origin)."""

    x: int = Field(..., description="Left edge")
    y: int = Field(..., description="Top edge")
    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersects(self, other: "Bounds") -> bool:
        """True if the two rectangles share any area or touch."""
        return not (
            self.right < other.x or other.right < self.x or self.bottom < other.y or other.bottom < self.y
        )


# ============================================================================
# Composition Models
# ============================================================================


class ShadowConfig(BaseModel):
    """Drop shadow synthesized beneath a product layer."""

    enabled: bool = Field(default=False, description="Synthesize a drop shadow")
    angle: int = Field(default=135, description="Light angle in degrees")
    blur: int = Field(default=15, ge=0, description="Blur radius in pixels")
    opacity: float = Field(default=0.3, ge=0.0, le=1.0, description="Shadow opacity")


class ProductPosition(BaseModel):
    """Percentage position of a product on the canvas."""

    x: float = Field(..., description="Horizontal centre in percent of canvas width")
    y: float = Field(..., description="Vertical origin in percent of canvas height")
    anchor: ProductAnchor = Field(default=ProductAnchor.CENTER, description="Vertical anchor")


class ProductPlacement(BaseModel):
    """A product layer to composite onto the background."""

    asset_id: str = Field(..., description="Source asset id")
    asset_url: str = Field(..., description="Source image URL")
    position: ProductPosition = Field(..., description="Percentage position and anchor")
    scale: float = Field(default=1.0, gt=0, description="Scale applied to the intrinsic size")
    max_width: Optional[float] = Field(default=None, gt=0, description="Maximum width in percent of canvas width")
    max_height: Optional[float] = Field(default=None, gt=0, description="Maximum height in percent of canvas height")
    shadow: ShadowConfig = Field(default_factory=ShadowConfig, description="Drop shadow settings")
    z_index: int = Field(default=0, description="Draw order; higher draws later")
    rotation: float = Field(default=0.0, description="Clockwise rotation in degrees")
    flip: FlipMode = Field(default=FlipMode.NONE, description="Mirror mode")


class EnvironmentConfig(BaseModel):
    """Background environment description for the external generator."""

    prompt: str = Field(..., description="Brand-free environment prompt")
    style: str = Field(default="photorealistic", description="photorealistic, lifestyle, studio or natural")
    lighting: str = Field(default="warm", description="warm, cool, natural, dramatic or soft")
    palette: list[str] = Field(default_factory=list, description="Colour palette hex codes")


class LogoOverlayConfig(BaseModel):
    """Logo drawn on top of a composition."""

    asset_id: Optional[str] = Field(default=None, description="Source asset id")
    asset_url: str = Field(..., description="Logo image URL")
    logo_type: LogoType = Field(default=LogoType.PRIMARY, description="Logo type")
    position: LogoPositionName = Field(default=LogoPositionName.BOTTOM_RIGHT, description="Named position")
    size: LogoSize = Field(default=LogoSize.MEDIUM, description="Relative size")
    opacity: float = Field(default=0.9, ge=0.0, le=1.0, description="Requested opacity")


class OutputConfig(BaseModel):
    """Output canvas."""

    width: int = Field(default=1920, gt=0, description="Width in pixels")
    height: int = Field(default=1080, gt=0, description="Height in pixels")
    format: str = Field(default="png", description="png, jpeg or webp")
    quality: int = Field(default=95, ge=1, le=100, description="Lossy encoder quality")


class CompositionRequest(BaseModel):
    """Everything needed to composite one scene image."""

    scene_id: str = Field(..., description="Scene identifier")
    visual_direction: str = Field(default="", description="Original visual direction")
    background_url: Optional[str] = Field(default=None, description="Already generated background image URL")
    environment: Optional[EnvironmentConfig] = Field(default=None, description="Environment for background generation")
    products: list[ProductPlacement] = Field(default_factory=list, description="Product layers")
    logo_overlay: Optional[LogoOverlayConfig] = Field(default=None, description="Optional logo overlay")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output canvas")
    safe_zone_margin: Optional[int] = Field(default=None, ge=0, description="Overrides the configured safe-zone margin")


class LayerBounds(BaseModel):
    """Computed pixel bounds of a placed layer."""

    layer_id: str = Field(..., description="Asset id of the layer")
    kind: str = Field(..., description="'product' or 'logo'")
    z_index: int = Field(default=0, description="Draw order")
    bounds: Bounds = Field(..., description="Pixel bounds on the output canvas")
    overlap_unresolved: bool = Field(default=False, description="Layer still overlaps a product region")
    constraint_violation: bool = Field(default=False, description="Layer could not respect the safe-zone margin")


class CompositionResult(BaseModel):
    """Outcome of a composition call. Never raised, always returned."""

    success: bool = Field(..., description="Composition succeeded")
    image_url: str = Field(default="", description="Public URL or data URI of the composed image")
    image: Optional[bytes] = Field(default=None, repr=False, description="Encoded composed image")
    width: int = Field(default=0, description="Output width")
    height: int = Field(default=0, description="Output height")
    layer_bounds: list[LayerBounds] = Field(default_factory=list, description="Bounds of every placed layer")
    environment_prompt: str = Field(default="", description="Prompt used for the background")
    warnings: list[str] = Field(default_factory=list, description="Non-fatal problems (skipped layers, fallbacks)")
    error: Optional[str] = Field(default=None, description="Failure reason when success is False")

    @property
    def product_regions(self) -> list[Bounds]:
        return [layer.bounds for layer in self.layer_bounds if layer.kind == "product"]


# ============================================================================
# Logo Composition Models
# ============================================================================


class LogoPlacement(BaseModel):
    """A planned logo for a scene (video overlay or still composition)."""

    logo_type: LogoType = Field(..., description="Logo type")
    asset_id: Optional[str] = Field(default=None, description="Selected asset id")
    asset_url: Optional[str] = Field(default=None, description="Selected asset URL")
    position: LogoPositionName = Field(default=LogoPositionName.BOTTOM_RIGHT, description="Named position")
    custom_position: Optional[ProductPosition] = Field(default=None, description="Percent centre for custom positions")
    size: LogoSize = Field(default=LogoSize.MEDIUM, description="Relative size")
    max_width_percent: Optional[float] = Field(default=None, gt=0, description="Maximum width in percent")
    max_height_percent: Optional[float] = Field(default=None, gt=0, description="Maximum height in percent")
    opacity: float = Field(default=1.0, ge=0.0, le=1.0, description="Requested opacity")
    animation: str = Field(default="fade-in", description="none, fade-in, slide-in, scale-up, fade-out-end or pulse")
    animation_duration: int = Field(default=15, ge=0, description="Animation length in frames")
    animation_delay: int = Field(default=0, ge=0, description="Animation delay in frames")
    start_frame: int = Field(default=0, ge=0, description="First visible frame")
    end_frame: Optional[int] = Field(default=None, description="Last visible frame (scene end when unset)")


class LogoCompositionConfig(BaseModel):
    """All logo placements of a scene plus the canvas they live on."""

    scene_id: str = Field(..., description="Scene identifier")
    scene_duration: float = Field(..., gt=0, description="Scene length in seconds")
    fps: int = Field(default=30, gt=0, description="Frames per second")
    width: int = Field(default=1920, gt=0, description="Canvas width")
    height: int = Field(default=1080, gt=0, description="Canvas height")
    logos: list[LogoPlacement] = Field(default_factory=list, description="Planned logos")
    safe_zone_margin: int = Field(default=40, ge=0, description="Safe-zone margin in pixels")
    respect_product_regions: bool = Field(default=True, description="Move logos away from product regions")
    product_regions: list[Bounds] = Field(default_factory=list, description="Occupied product regions")


class LogoPosition(BaseModel):
    """Computed logo position in pixels."""

    x: int = Field(..., description="Left edge")
    y: int = Field(..., description="Top edge")
    width: int = Field(..., ge=0, description="Width")
    height: int = Field(..., ge=0, description="Height")
    opacity: float = Field(default=1.0, ge=0.0, le=1.0, description="Resolved opacity")
    overlap_unresolved: bool = Field(default=False, description="Still intersects a product region")
    constraint_violation: bool = Field(default=False, description="Does not fit inside the safe zone")

    @property
    def bounds(self) -> Bounds:
        return Bounds(x=self.x, y=self.y, width=self.width, height=self.height)


class ResolvedLogoPlacement(BaseModel):
    """A logo placement with its pixel position and frame window."""

    logo_type: LogoType = Field(..., description="Logo type")
    logo_url: str = Field(..., description="Logo image URL")
    position: LogoPosition = Field(..., description="Pixel position")
    animation: str = Field(default="fade-in", description="Animation name")
    animation_duration: int = Field(default=15, description="Animation length in frames")
    animation_delay: int = Field(default=0, description="Animation delay in frames")
    start_frame: int = Field(default=0, description="First visible frame")
    end_frame: int = Field(..., description="Last visible frame")


# ============================================================================
# Overlay Placement Models
# ============================================================================


class Overlay(BaseModel):
    """A text or logo overlay to place on a scene."""

    id: str = Field(..., description="Overlay identifier")
    text: str = Field(default="", description="Overlay text (asset name for logos)")
    type: OverlayType = Field(default=OverlayType.CAPTION, description="Overlay type")
    asset_url: Optional[str] = Field(default=None, description="Asset URL for logo overlays")


class Region(BaseModel):
    """A frame region expressed in fractions of the frame (0.0-1.0)."""

    x: float = Field(..., description="Left edge fraction")
    y: float = Field(..., description="Top edge fraction")
    width: float = Field(..., ge=0.0, description="Width fraction")
    height: float = Field(..., ge=0.0, description="Height fraction")


SAFE_ZONE_GRID_POSITIONS: dict[str, str] = {
    "top_left": "top-left",
    "top_center": "top-center",
    "top_right": "top-right",
    "middle_left": "middle-left",
    "middle_center": "center",
    "middle_right": "middle-right",
    "bottom_left": "bottom-left",
    "bottom_center": "bottom-center",
    "bottom_right": "bottom-right",
}


class FrameAnalysis(BaseModel):
    """Upstream frame analysis consumed by overlay placement."""

    faces: list[Region] = Field(default_factory=list, description="Detected face boxes")
    safe_positions: list[str] = Field(default_factory=list, description="Grid positions flagged safe for text")
    busy_regions: list[str] = Field(default_factory=list, description="Grid positions flagged visually cluttered")
    dominant_colors: list[str] = Field(default_factory=list, description="Dominant colour names")
    lighting_type: str = Field(default="neutral", description="neutral, warm or cool")

    @classmethod
    def from_safe_zone_grid(
        cls,
        grid: dict[str, bool],
        faces: Optional[list[Region]] = None,
        dominant_colors: Optional[list[str]] = None,
        brightness: str = "normal",
    ) -> "FrameAnalysis":
        """
        Build a frame analysis from a 3x3 safe-zone grid.

        Args:
            grid: Mapping of cell name (top_left ... bottom_right) to "safe for text"
            faces: Detected face boxes
            dominant_colors: Dominant colour names
            brightness: 'bright' maps to warm lighting

        Returns:
            FrameAnalysis with safe positions and busy regions filled in
        """
        safe_positions: list[str] = []
        busy_regions: list[str] = []
        for cell, position in SAFE_ZONE_GRID_POSITIONS.items():
            if cell not in grid:
                continue
            if grid[cell]:
                safe_positions.append(position)
            else:
                busy_regions.append(position)

        if any(grid.get(cell) for cell in ("bottom_left", "bottom_center", "bottom_right")):
            safe_positions.append("lower-third")

        return cls(
            faces=faces or [],
            safe_positions=safe_positions,
            busy_regions=busy_regions,
            dominant_colors=dominant_colors or [],
            lighting_type="warm" if brightness == "bright" else "neutral",
        )


class OverlayPosition(BaseModel):
    """Percentage position of an overlay."""

    x: float = Field(..., description="Horizontal position in percent")
    y: float = Field(..., description="Vertical position in percent")
    anchor: str = Field(..., description="Anchor name")


class OverlayTiming(BaseModel):
    """Frame window of an overlay."""

    start_frame: int = Field(..., ge=0, description="First frame")
    end_frame: int = Field(..., ge=0, description="Last frame (exclusive)")


class OverlayAnimation(BaseModel):
    """Enter/exit animation of an overlay."""

    enter: str = Field(..., description="Enter animation")
    exit: str = Field(..., description="Exit animation")
    duration_sec: float = Field(..., ge=0, description="Animation length in seconds")


class TextStyle(BaseModel):
    """Rendering style of a text overlay."""

    font_size: int = Field(default=20, description="Font size in pixels")
    font_weight: str = Field(default="normal", description="normal, semibold or bold")
    font_family: str = Field(default="Inter, sans-serif", description="Font family")
    color: str = Field(default="#FFFFFF", description="Text colour")
    background_color: Optional[str] = Field(default=None, description="Plate colour")
    padding: Optional[int] = Field(default=None, description="Plate padding")
    border_radius: Optional[int] = Field(default=None, description="Plate corner radius")
    shadow: bool = Field(default=False, description="Text shadow")


class OverlayPlacement(BaseModel):
    """An accepted overlay with position, timing, style and animation."""

    overlay: Overlay = Field(..., description="Placed overlay")
    position_name: str = Field(..., description="Chosen grid position")
    position: OverlayPosition = Field(..., description="Percentage position")
    timing: OverlayTiming = Field(..., description="Frame window")
    style: TextStyle = Field(..., description="Rendering style")
    animation: OverlayAnimation = Field(..., description="Enter/exit animation")
    placement_reason: str = Field(default="", description="Why this position was chosen")
    score: float = Field(default=0.0, description="Winning candidate score")


class PlacementStats(BaseModel):
    """Summary counts of a placement run."""

    unique_count: int = Field(default=0, description="Overlays left after deduplication")
    skipped: int = Field(default=0, description="Overlays rejected for lack of a good position")


class OverlayPlacementResult(BaseModel):
    """Accepted placements plus summary counts."""

    placements: list[OverlayPlacement] = Field(default_factory=list, description="Accepted placements")
    stats: PlacementStats = Field(default_factory=PlacementStats, description="Summary counts")


# ============================================================================
# Motion Detection Models
# ============================================================================


class CameraMovement(BaseModel):
    """Camera movement hint for animation."""

    direction: str = Field(..., description="left, right, up, down, push or pull")
    distance: str = Field(default="subtle", description="subtle or moderate")


class EnvironmentalEffects(BaseModel):
    """Ambient effects for environmental motion."""

    light_flicker: bool = Field(default=False, description="Light shifts or flicker")
    plant_movement: bool = Field(default=False, description="Swaying plants or leaves")
    particle_dust: bool = Field(default=False, description="Floating dust or particles")


class MotionDetection(BaseModel):
    """Motion classification of a visual direction."""

    style: MotionStyle = Field(default=MotionStyle.SUBTLE, description="Motion style")
    intensity: str = Field(default="low", description="minimal, low or medium")
    camera_movement: Optional[CameraMovement] = Field(default=None, description="Camera movement")
    environmental_effects: Optional[EnvironmentalEffects] = Field(default=None, description="Ambient effects")
    reveal_direction: Optional[str] = Field(default=None, description="left, right, bottom, top or center")
    signals: list[str] = Field(default_factory=list, description="Cues that fired")


# ============================================================================
# Orchestration Models
# ============================================================================


class SceneResult(BaseModel):
    """Everything the engine produced for one scene."""

    scene_id: str = Field(..., description="Scene identifier")
    success: bool = Field(..., description="Scene pipeline completed")
    path: WorkflowPath = Field(default=WorkflowPath.STANDARD, description="Executed workflow path")
    requirements: Optional[BrandRequirements] = Field(default=None, description="Analyzed requirements")
    matches: Optional[MatchedAssetSet] = Field(default=None, description="Matched assets")
    decision: Optional[WorkflowDecision] = Field(default=None, description="Routing decision")
    motion: Optional[MotionDetection] = Field(default=None, description="Motion plan for animated paths")
    composition: Optional[CompositionResult] = Field(default=None, description="Composition for compositing paths")
    logo_placements: list[ResolvedLogoPlacement] = Field(default_factory=list, description="Logo overlays")
    overlays: Optional[OverlayPlacementResult] = Field(default=None, description="Text overlay placements")
    stock_item_id: Optional[str] = Field(default=None, description="Stock item claimed for this scene")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Additional diagnostics")
    execution_time_ms: int = Field(default=0, description="Wall-clock time spent on the scene")
    error: Optional[str] = Field(default=None, description="Failure reason when success is False")
