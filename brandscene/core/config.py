"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MatchWeights(BaseModel):
    """
    Scoring weights for brand asset matching.

    The defaults are empirically tuned. Only their relative ordering matters:
    declared-type match > name match > keyword match > priority nudge.
    """

    declared_type: int = Field(default=20, description="Bonus when the asset's taxonomy type matches the requested category")
    sub_qualifier_max: int = Field(default=25, description="Maximum bonus for type sub-qualifiers matching the requested intent")
    product_name: int = Field(default=10, description="Bonus per product name found in the asset text")
    product_metadata: int = Field(default=15, description="Bonus when a product name is found in structured product metadata")
    logo_cue: int = Field(default=10, description="Bonus when the asset text matches the requested logo type")
    brand_name: int = Field(default=5, description="Bonus when the asset text mentions a configured brand name")
    location_cue: int = Field(default=10, description="Bonus per location cue found in the asset text")
    default_asset: int = Field(default=3, description="Bonus for assets flagged as default")
    default_asset_keyword_path: int = Field(default=5, description="Default-asset bonus in the generic keyword search")
    keyword_hit: int = Field(default=10, description="Bonus per keyword hit in the generic keyword search")
    transparent_product: int = Field(default=2, description="Transparent-format bonus for product assets")
    transparent_logo: int = Field(default=3, description="Transparent-format bonus for logo assets")

    # Taxonomy full-text mode
    position_bonus_base: int = Field(default=20, description="Positional bonus for the first-ranked taxonomy type")
    position_bonus_step: int = Field(default=2, description="Positional bonus lost per rank")
    type_match_bonus: int = Field(default=25, description="Flat bonus for matched or top-ranked taxonomy types")
    top_type_count: int = Field(default=5, description="Number of top-ranked types receiving the flat bonus")
    direct_name_hit: int = Field(default=50, description="Bonus when the asset name appears in the direction text")
    entity_name_hit: int = Field(default=40, description="Bonus when the brand/entity name appears in the direction text")


class PlacementWeights(BaseModel):
    """Scoring weights for overlay position candidates."""

    base: int = Field(default=50, description="Base score of every candidate position")
    preferred: int = Field(default=30, description="Bonus for positions preferred by the overlay type")
    safe_zone: int = Field(default=20, description="Bonus for positions flagged safe by frame analysis")
    face_overlap: int = Field(default=-100, description="Penalty for overlapping a detected face")
    busy_region: int = Field(default=-25, description="Penalty for a visually cluttered region")
    lower_third_busy: int = Field(default=-15, description="Extra lower-third penalty when any bottom region is busy")
    overlay_proximity: int = Field(default=-50, description="Penalty per accepted overlay close to the candidate")
    face_padding: float = Field(default=0.1, description="Face box padding as a fraction of the frame")
    close_dx_percent: float = Field(default=20.0, description="Horizontal closeness threshold in percent of canvas")
    close_dy_percent: float = Field(default=15.0, description="Vertical closeness threshold in percent of canvas")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    Nested weight models use a double underscore, e.g. MATCH_WEIGHTS__PRODUCT_NAME=12.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="Brand Scene Composer", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional path of a rotating log file")

    # ========================================================================
    # Output Canvas Settings
    # ========================================================================
    output_width: int = Field(default=1920, gt=0, description="Composition width in pixels (default: 1920)")
    output_height: int = Field(default=1080, gt=0, description="Composition height in pixels (default: 1080)")
    output_format: str = Field(default="png", description="Composition output format: png, jpeg or webp")
    output_quality: int = Field(default=95, ge=1, le=100, description="Lossy encoder quality (default: 95)")
    default_fps: int = Field(default=30, gt=0, description="Frame rate used when a scene does not declare one")

    # ========================================================================
    # Safe Zone Settings
    # ========================================================================
    safe_zone_margin: int = Field(
        default=40,
        ge=0,
        description="Minimum pixel distance any logo or overlay keeps from the canvas edge (default: 40)",
    )
    watermark_max_opacity: float = Field(
        default=0.5,
        ge=0.0,
        le=0.5,
        description="Opacity ceiling applied to watermark logos (default: 0.5, never above 0.5)",
    )

    # ========================================================================
    # Brand Vocabulary
    # ========================================================================
    brand_names: list[str] = Field(
        default=["pine hill farm", "phf"],
        description="Brand names treated as branding cues and entity-name hits",
    )
    extra_product_names: list[str] = Field(
        default_factory=list,
        description="Additional product names appended to the built-in product dictionary",
    )

    # ========================================================================
    # Asset Matching Settings
    # ========================================================================
    match_weights: MatchWeights = Field(default_factory=MatchWeights, description="Asset matching weights")
    max_product_matches: int = Field(default=5, gt=0, description="Maximum product matches per scene")
    max_logo_matches: int = Field(default=3, gt=0, description="Maximum logo matches per scene")
    max_location_matches: int = Field(default=3, gt=0, description="Maximum location matches per scene")
    taxonomy_matches_per_category: int = Field(
        default=10, gt=0, description="Maximum matches kept per category in taxonomy full-text mode"
    )
    asset_catalog_path: str = Field(
        default="storage/brand_assets.json", description="JSON file backing the file-based asset repository"
    )

    # ========================================================================
    # Workflow Routing Settings
    # ========================================================================
    router_min_confidence: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Requirement confidence below which scenes are routed to the standard path (0 disables)",
    )
    strong_product_score: int = Field(
        default=30,
        description="Minimum match score for a product asset to be used directly as a hero shot",
    )

    # ========================================================================
    # Overlay Placement Settings
    # ========================================================================
    placement_weights: PlacementWeights = Field(
        default_factory=PlacementWeights, description="Overlay placement weights"
    )
    placement_rejection_threshold: float = Field(
        default=0.0,
        description="An overlay is placed only if its best candidate scores strictly above this value",
    )
    overlap_frame_buffer: int = Field(
        default=10, ge=0, description="Frames inserted between overlays that share screen space"
    )

    # ========================================================================
    # Fetching & Storage Settings
    # ========================================================================
    image_fetch_timeout: float = Field(default=15.0, gt=0, description="Image download timeout in seconds")
    blob_storage_path: str = Field(default="storage/compositions", description="Directory for uploaded compositions")
    blob_public_base_url: Optional[str] = Field(
        default=None, description="Public base URL of the blob storage (file URIs are returned when unset)"
    )

    # ========================================================================
    # Parallelism Settings
    # ========================================================================
    max_parallel_scenes: int = Field(
        default=3,
        ge=1,
        description="Maximum number of scenes processed concurrently (default: 3, set to 1 for sequential)",
    )
    max_parallel_candidates: int = Field(
        default=4, ge=1, description="Maximum number of candidate generations run concurrently"
    )
    background_candidates: int = Field(
        default=1, ge=1, description="Background candidates generated per composited scene (best one is kept)"
    )

    @field_validator("output_format")
    @classmethod
    def _check_output_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"png", "jpeg", "jpg", "webp"}:
            raise ValueError(f"Unsupported output format: {value}")
        return "jpeg" if value == "jpg" else value


# Global settings instance
settings = Settings()
