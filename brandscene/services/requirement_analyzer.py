"""Requirement Analyzer - derives brand requirements from scene text."""

from typing import Any, Optional

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    BrandRequirements,
    LogoType,
    MotionStyle,
    OutputType,
    SceneType,
    Visibility,
)
from brandscene.utils.text_utils import contains_phrase, find_phrases, normalize_text

PRODUCT_KEYWORDS = [
    "product", "bottle", "packaging", "label", "supplement", "extract", "gummies",
    "lotion", "oil", "testing kit", "test kit", "materials", "capsule", "tincture",
    "cream", "serum", "spray", "drops",
]

PRODUCT_NAMES = [
    "black cohosh", "deep sleep", "wonder lotion", "b-complex", "ultra omega",
    "herbal ear oil", "hemp extract", "lab test", "dutch test", "gut health test",
    "bioscan", "bio-scan", "vitamin d", "vitamin c", "magnesium", "zinc", "probiotic",
    "digestive enzyme", "adrenal support", "thyroid support", "hormone balance",
    "detox", "cleanse", "immune support",
]

BRANDING_KEYWORDS = [
    "branding", "branded", "logo", "watermark", "label visible", "packaging visible",
    "brand visible", "branding clearly", "brand recognition", "our brand", "our logo",
    "company logo", "brand identity", "wellness center", "wellness facility", "our facility",
]

VISIBILITY_MODIFIERS = {
    "featured": [
        "prominently", "featured", "hero", "showcase", "highlight", "focus on",
        "close-up", "closeup", "front and center",
    ],
    "visible": ["visible", "showing", "displaying", "with", "including", "featuring"],
    "subtle": ["subtle", "background", "secondary", "hint of", "barely visible", "in the distance"],
}

MOTION_INDICATORS = {
    "static": ["still", "static", "photograph", "photo", "image", "picture"],
    "subtle": ["subtle motion", "slight movement", "gentle", "camera drift", "slow pan", "soft movement"],
    "environmental": [
        "environmental motion", "background movement", "ambient", "atmospheric", "living scene",
    ],
    "reveal": ["zoom into", "reveal", "emerge", "transition to", "pull back", "zoom out", "dolly"],
}

HERO_CUES = ["close-up", "closeup", "hero shot"]
CONTEXT_CUES = ["room", "desk", "table", "shelf", "counter", "display", "in context"]
CERTIFICATION_CUES = ["usda", "organic", "certification", "certified"]
PARTNER_CUES = ["partner", "association", "society"]

CONFIDENCE_WEIGHTS = {
    "product_name": 0.4,
    "product_mentioned": 0.2,
    "featured": 0.2,
    "logo_required": 0.5,
    "prominent_branding": 0.2,
}


class RequirementAnalyzer:
    """Classifies scene text into a BrandRequirements record."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the requirement analyzer.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.product_names = PRODUCT_NAMES + [n.lower() for n in settings.extra_product_names]
        self.brand_names = [n.lower() for n in settings.brand_names]
        self.branding_keywords = self.brand_names + BRANDING_KEYWORDS

    def analyze(self, visual_direction: str, narration: str = "") -> BrandRequirements:
        """
        Analyze a scene's visual direction and narration.

        Product names are looked up in the combined text; every other cue is read
        from the visual direction only, which describes what is on screen.

        Args:
            visual_direction: Free-text visual direction
            narration: Narration spoken over the scene

        Returns:
            BrandRequirements with the signals that fired
        """
        direction = normalize_text(visual_direction)
        combined = normalize_text(visual_direction, narration)
        signals: list[str] = []

        product_names = find_phrases(combined, self.product_names)
        signals.extend(f"product_name:{name}" for name in product_names)
        product_keywords = find_phrases(direction, PRODUCT_KEYWORDS)
        signals.extend(f"product_keyword:{kw}" for kw in product_keywords)
        product_mentioned = bool(product_names or product_keywords)

        product_visibility = self._product_visibility(direction, signals)

        branding_hits = find_phrases(direction, self.branding_keywords)
        signals.extend(f"branding:{kw}" for kw in branding_hits)
        logo_type = self._logo_type(direction)
        if logo_type:
            signals.append(f"logo_type:{logo_type.value}")
        logo_required = bool(branding_hits) or logo_type is not None
        branding_visibility = self._branding_visibility(direction)

        scene_type = self._scene_type(direction, product_mentioned, product_visibility, logo_required)
        signals.append(f"scene_type:{scene_type.value}")

        static_hits = find_phrases(direction, MOTION_INDICATORS["static"])
        output_type = OutputType.IMAGE if static_hits else OutputType.VIDEO
        if static_hits:
            signals.append(f"output:image({static_hits[0]})")
        motion_style = self._motion_style(direction)

        confidence = 0.0
        if product_names:
            confidence += CONFIDENCE_WEIGHTS["product_name"]
        if product_mentioned:
            confidence += CONFIDENCE_WEIGHTS["product_mentioned"]
        if product_visibility == Visibility.FEATURED:
            confidence += CONFIDENCE_WEIGHTS["featured"]
        if logo_required:
            confidence += CONFIDENCE_WEIGHTS["logo_required"]
        if branding_visibility == Visibility.PROMINENT:
            confidence += CONFIDENCE_WEIGHTS["prominent_branding"]
        confidence = round(min(confidence, 1.0), 4)

        requirements = BrandRequirements(
            product_mentioned=product_mentioned,
            product_names=product_names,
            product_visibility=product_visibility,
            logo_required=logo_required,
            logo_type=logo_type,
            branding_visibility=branding_visibility,
            scene_type=scene_type,
            output_type=output_type,
            motion_style=motion_style,
            confidence=confidence,
            requires_brand_assets=confidence > 0.4,
            signals=signals,
        )
        self.logger.debug(
            f"Analyzed requirements: scene_type={scene_type.value}, confidence={confidence:.2f}, "
            f"signals={len(signals)}"
        )
        return requirements

    def _product_visibility(self, direction: str, signals: list[str]) -> Visibility:
        featured = find_phrases(direction, VISIBILITY_MODIFIERS["featured"])
        if featured:
            signals.append(f"visibility:featured({featured[0]})")
            return Visibility.FEATURED
        if contains_phrase(direction, "prominent"):
            signals.append("visibility:prominent")
            return Visibility.PROMINENT
        subtle = find_phrases(direction, VISIBILITY_MODIFIERS["subtle"])
        if subtle:
            signals.append(f"visibility:background({subtle[0]})")
            return Visibility.BACKGROUND
        return Visibility.VISIBLE

    @staticmethod
    def _logo_type(direction: str) -> Optional[LogoType]:
        if contains_phrase(direction, "logo"):
            return LogoType.PRIMARY
        if contains_phrase(direction, "watermark"):
            return LogoType.WATERMARK
        if find_phrases(direction, CERTIFICATION_CUES):
            return LogoType.CERTIFICATION
        if find_phrases(direction, PARTNER_CUES):
            return LogoType.PARTNER
        return None

    @staticmethod
    def _branding_visibility(direction: str) -> Visibility:
        if contains_phrase(direction, "prominently") or contains_phrase(direction, "clearly visible"):
            return Visibility.PROMINENT
        if contains_phrase(direction, "subtle") or contains_phrase(direction, "hint"):
            return Visibility.SUBTLE
        return Visibility.VISIBLE

    @staticmethod
    def _scene_type(
        direction: str,
        product_mentioned: bool,
        product_visibility: Visibility,
        logo_required: bool,
    ) -> SceneType:
        if product_visibility == Visibility.FEATURED or find_phrases(direction, HERO_CUES):
            return SceneType.PRODUCT_HERO
        if product_mentioned and find_phrases(direction, CONTEXT_CUES):
            return SceneType.PRODUCT_IN_CONTEXT
        if logo_required and not product_mentioned:
            return SceneType.BRANDED_ENVIRONMENT
        return SceneType.STANDARD

    @staticmethod
    def _motion_style(direction: str) -> MotionStyle:
        if find_phrases(direction, MOTION_INDICATORS["reveal"]):
            return MotionStyle.REVEAL
        if find_phrases(direction, MOTION_INDICATORS["environmental"]):
            return MotionStyle.ENVIRONMENTAL
        return MotionStyle.SUBTLE

    def get_patterns(self) -> dict[str, Any]:
        """Return the keyword tables used for classification."""
        return {
            "product_keywords": list(PRODUCT_KEYWORDS),
            "product_names": list(self.product_names),
            "branding_keywords": list(self.branding_keywords),
            "visibility_modifiers": {k: list(v) for k, v in VISIBILITY_MODIFIERS.items()},
            "motion_indicators": {k: list(v) for k, v in MOTION_INDICATORS.items()},
        }
