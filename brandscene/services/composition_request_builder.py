"""Composition Request Builder - turns requirements and matched assets into a composition request."""

from typing import Any, Optional

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    AssetMatch,
    BrandRequirements,
    CompositionRequest,
    EnvironmentConfig,
    LogoOverlayConfig,
    LogoPositionName,
    LogoSize,
    LogoType,
    MatchedAssetSet,
    OutputConfig,
    ProductAnchor,
    ProductPlacement,
    ProductPosition,
    ShadowConfig,
    Visibility,
)
from brandscene.services.requirement_analyzer import PRODUCT_KEYWORDS, PRODUCT_NAMES
from brandscene.utils.text_utils import contains_phrase, normalize_text, strip_phrases

BRAND_PALETTE = ["#2D5A27", "#D4A574", "#8B4513"]

FALLBACK_ENVIRONMENT_PROMPT = (
    "Clean, organized workspace with natural wood surfaces, warm lighting, "
    "plants in background, earth tone color palette"
)

MIN_PROMPT_LENGTH = 20

# (cue, style) in priority order
STYLE_CUES = [
    (["lifestyle", "editorial"], "lifestyle"),
    (["studio", "clean background"], "studio"),
    (["natural", "organic"], "natural"),
]

LIGHTING_CUES = [
    (["cool light", "blue"], "cool"),
    (["dramatic"], "dramatic"),
    (["soft", "diffused"], "soft"),
    (["natural light"], "natural"),
]

# x%, y%, scale for three to five products
GROUP_LAYOUT = [
    (30, 75, 0.7),
    (50, 65, 0.9),
    (70, 75, 0.7),
    (40, 80, 0.6),
    (60, 80, 0.6),
]

MAX_COMPOSED_PRODUCTS = 5


class CompositionRequestBuilder:
    """Builds CompositionRequest objects for the compositing workflow paths."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the builder.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.strip_terms = (
            [n.lower() for n in settings.brand_names]
            + PRODUCT_NAMES
            + [n.lower() for n in settings.extra_product_names]
            + PRODUCT_KEYWORDS
            + ["branding", "logo"]
        )

    def build(
        self,
        scene_id: str,
        visual_direction: str,
        requirements: BrandRequirements,
        matches: MatchedAssetSet,
        background_url: Optional[str] = None,
    ) -> CompositionRequest:
        """
        Build a composition request for one scene.

        Args:
            scene_id: Scene identifier
            visual_direction: Original visual direction
            requirements: Analyzed brand requirements
            matches: Matched assets for the scene
            background_url: Already generated background, if any

        Returns:
            CompositionRequest with environment, product layers and optional logo overlay
        """
        request = CompositionRequest(
            scene_id=scene_id,
            visual_direction=visual_direction,
            background_url=background_url,
            environment=self.build_environment(visual_direction),
            products=self.build_product_placements(matches.products),
            logo_overlay=self.build_logo_overlay(requirements, matches),
            output=self._output(),
            safe_zone_margin=self.settings.safe_zone_margin,
        )
        self.logger.debug(
            f"Built composition request for {scene_id}: {len(request.products)} product(s), "
            f"logo={'yes' if request.logo_overlay else 'no'}"
        )
        return request

    def build_environment(
        self, visual_direction: str, style: Optional[str] = None, lighting: Optional[str] = None
    ) -> EnvironmentConfig:
        """Detect style and lighting and strip brand terms so the generator draws only the setting."""
        text = normalize_text(visual_direction)
        return EnvironmentConfig(
            prompt=self.clean_prompt(visual_direction),
            style=style or self._first_cue(text, STYLE_CUES, "photorealistic"),
            lighting=lighting or self._first_cue(text, LIGHTING_CUES, "warm"),
            palette=list(BRAND_PALETTE),
        )

    def clean_prompt(self, visual_direction: str) -> str:
        cleaned = strip_phrases(visual_direction, self.strip_terms)
        if len(cleaned) < MIN_PROMPT_LENGTH:
            return FALLBACK_ENVIRONMENT_PROMPT
        return cleaned

    def build_product_placements(self, products: list[AssetMatch]) -> list[ProductPlacement]:
        """
        Lay out up to five product layers.

        One product sits centred, two share the centre line, three to five form a group.
        """
        sources = [(match.asset.id, match.asset.url) for match in products[:MAX_COMPOSED_PRODUCTS]]
        return self._layout(sources)

    def build_logo_overlay(
        self, requirements: BrandRequirements, matches: MatchedAssetSet
    ) -> Optional[LogoOverlayConfig]:
        if not requirements.logo_required or not matches.logos:
            return None

        logo = matches.logos[0].asset
        position = LogoPositionName.BOTTOM_RIGHT
        size = LogoSize.MEDIUM
        opacity = 0.9

        if requirements.branding_visibility == Visibility.PROMINENT:
            position = LogoPositionName.TOP_LEFT
            size = LogoSize.LARGE
            opacity = 1.0
        elif requirements.branding_visibility == Visibility.SUBTLE:
            size = LogoSize.SMALL
            opacity = 0.7

        return LogoOverlayConfig(
            asset_id=logo.id,
            asset_url=logo.url,
            logo_type=requirements.logo_type or LogoType.PRIMARY,
            position=position,
            size=size,
            opacity=opacity,
        )

    def build_from_simple_params(
        self,
        scene_id: str,
        environment_prompt: str,
        product_urls: list[str],
        style: Optional[str] = None,
        lighting: Optional[str] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> CompositionRequest:
        """
        Build a request from a prompt and raw product URLs (no analysis step).

        Args:
            scene_id: Scene identifier
            environment_prompt: Background prompt, used as-is
            product_urls: Product image URLs (at most five are used)
            style: Environment style override
            lighting: Lighting override
            width: Output width override
            height: Output height override

        Returns:
            CompositionRequest without a logo overlay
        """
        sources = [(f"product-{i + 1}", url) for i, url in enumerate(product_urls[:MAX_COMPOSED_PRODUCTS])]
        output = self._output()
        return CompositionRequest(
            scene_id=scene_id,
            visual_direction=environment_prompt,
            environment=EnvironmentConfig(
                prompt=environment_prompt,
                style=style or "photorealistic",
                lighting=lighting or "warm",
                palette=list(BRAND_PALETTE),
            ),
            products=self._layout(sources),
            output=output.model_copy(update={"width": width or output.width, "height": height or output.height}),
        )

    @staticmethod
    def _layout(sources: list[tuple[str, str]]) -> list[ProductPlacement]:
        if not sources:
            return []

        if len(sources) == 1:
            asset_id, url = sources[0]
            return [
                ProductPlacement(
                    asset_id=asset_id,
                    asset_url=url,
                    position=ProductPosition(x=50, y=70, anchor=ProductAnchor.BOTTOM_CENTER),
                    scale=1.0,
                    max_width=40,
                    max_height=60,
                    shadow=ShadowConfig(enabled=True, blur=15, opacity=0.3),
                    z_index=1,
                )
            ]

        if len(sources) == 2:
            return [
                ProductPlacement(
                    asset_id=asset_id,
                    asset_url=url,
                    position=ProductPosition(x=35 + i * 30, y=70, anchor=ProductAnchor.BOTTOM_CENTER),
                    scale=0.85,
                    max_width=30,
                    max_height=50,
                    shadow=ShadowConfig(enabled=True, blur=12, opacity=0.25),
                    z_index=i + 1,
                )
                for i, (asset_id, url) in enumerate(sources)
            ]

        placements = []
        for i, (asset_id, url) in enumerate(sources):
            x, y, scale = GROUP_LAYOUT[i]
            placements.append(
                ProductPlacement(
                    asset_id=asset_id,
                    asset_url=url,
                    position=ProductPosition(x=x, y=y, anchor=ProductAnchor.BOTTOM_CENTER),
                    scale=scale,
                    max_width=25,
                    max_height=45,
                    shadow=ShadowConfig(enabled=True, blur=10, opacity=0.2),
                    z_index=i + 1,
                )
            )
        return placements

    def _output(self) -> OutputConfig:
        return OutputConfig(
            width=self.settings.output_width,
            height=self.settings.output_height,
            format=self.settings.output_format,
            quality=self.settings.output_quality,
        )

    @staticmethod
    def _first_cue(text: str, table: list[tuple[list[str], str]], default: str) -> str:
        for cues, value in table:
            if any(contains_phrase(text, cue) for cue in cues):
                return value
        return default
