"""Workflow Router - maps brand requirements and matched assets to a production path."""

from typing import Any

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    BrandRequirements,
    MatchedAssetSet,
    OutputType,
    QualityImpact,
    SceneType,
    Visibility,
    WorkflowDecision,
    WorkflowPath,
    WorkflowStep,
)

COST_MULTIPLIERS: dict[WorkflowPath, float] = {
    WorkflowPath.PRODUCT_VIDEO: 2.0,
    WorkflowPath.PRODUCT_IMAGE: 1.5,
    WorkflowPath.PRODUCT_HERO: 1.5,
    WorkflowPath.BRAND_ASSET_DIRECT: 1.2,
    WorkflowPath.LOGO_OVERLAY_ONLY: 1.1,
    WorkflowPath.STANDARD: 1.0,
}

QUALITY_IMPACT: dict[WorkflowPath, QualityImpact] = {
    WorkflowPath.PRODUCT_VIDEO: QualityImpact.HIGHER,
    WorkflowPath.PRODUCT_IMAGE: QualityImpact.HIGHER,
    WorkflowPath.PRODUCT_HERO: QualityImpact.HIGHER,
    WorkflowPath.BRAND_ASSET_DIRECT: QualityImpact.HIGHER,
    WorkflowPath.LOGO_OVERLAY_ONLY: QualityImpact.HIGHER,
    WorkflowPath.STANDARD: QualityImpact.SAME,
}

HERO_VISIBILITIES = (Visibility.FEATURED, Visibility.PROMINENT)


def _step(name: str, service: str, source: str, result: str, optional: bool = False) -> WorkflowStep:
    return WorkflowStep(name=name, service=service, input=source, output=result, optional=optional)


class WorkflowRouter:
    """Pure decision table over requirements and matched assets. Performs no I/O."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the workflow router.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def route(self, requirements: BrandRequirements, matches: MatchedAssetSet) -> WorkflowDecision:
        """
        Select the production path for a scene.

        Rules, in priority order:
            0. analysis found no brand need (requires_brand_assets false) -> standard
            1. nothing usable (no matched product, no logo, no location) -> standard
            2. logo required without product or location -> logo-overlay-only
            3. matched product and image output -> product-image
            4. matched product, hero intent and a single strong asset -> product-hero
            5. matched product, video output, product-in-context scene -> product-video
            6. matched location without product -> brand-asset-direct
            7. anything else falls back to logo-overlay-only or standard

        Args:
            requirements: Analyzed brand requirements
            matches: Matched assets for the same scene

        Returns:
            WorkflowDecision (equal inputs always yield an equal decision)
        """
        reasons = self._base_reasons(requirements, matches)
        product_ready = requirements.product_mentioned and bool(matches.products)
        location_ready = bool(matches.locations)
        degraded = False

        if requirements.product_mentioned and not matches.products:
            reasons.append("Product requested but no product asset matched")
            degraded = True
        if requirements.scene_type == SceneType.BRANDED_ENVIRONMENT and not matches.locations:
            reasons.append("Branded environment without a matched location asset")

        gate = self.settings.router_min_confidence
        if not requirements.requires_brand_assets:
            reasons.append("No brand assets detected")
            path = WorkflowPath.STANDARD
        elif gate > 0 and requirements.confidence < gate:
            reasons.append(f"Confidence {requirements.confidence:.2f} below threshold {gate:.2f}")
            path = WorkflowPath.STANDARD
            degraded = product_ready or location_ready or requirements.logo_required
        elif not product_ready and not requirements.logo_required and not location_ready:
            path = WorkflowPath.STANDARD
        elif requirements.logo_required and not product_ready and not location_ready:
            path = WorkflowPath.LOGO_OVERLAY_ONLY
        elif product_ready and requirements.output_type == OutputType.IMAGE:
            path = WorkflowPath.PRODUCT_IMAGE
        elif product_ready and self._is_hero(requirements):
            if self._has_strong_asset(matches):
                path = WorkflowPath.PRODUCT_HERO
            else:
                reasons.append("Hero intent but no single strong product asset, compositing instead")
                path = WorkflowPath.PRODUCT_VIDEO
        elif product_ready and requirements.scene_type == SceneType.PRODUCT_IN_CONTEXT:
            path = WorkflowPath.PRODUCT_VIDEO
        elif location_ready and not product_ready:
            path = WorkflowPath.BRAND_ASSET_DIRECT
        elif requirements.logo_required:
            reasons.append("Product not shown in context, keeping the logo overlay only")
            path = WorkflowPath.LOGO_OVERLAY_ONLY
        else:
            reasons.append("Product not shown in context, no compositing")
            path = WorkflowPath.STANDARD

        reasons.append(f"Selected path: {path.value}")
        quality = QualityImpact.LOWER if path == WorkflowPath.STANDARD and degraded else QUALITY_IMPACT[path]

        decision = WorkflowDecision(
            path=path,
            confidence=requirements.confidence,
            steps=self._build_steps(path, requirements),
            reasons=reasons,
            quality_impact=quality,
            cost_multiplier=COST_MULTIPLIERS[path],
        )
        self.logger.info(f"Routed to {path.value} (cost x{decision.cost_multiplier}, quality {quality.value})")
        return decision

    @staticmethod
    def _is_hero(requirements: BrandRequirements) -> bool:
        return (
            requirements.scene_type == SceneType.PRODUCT_HERO
            or requirements.product_visibility in HERO_VISIBILITIES
        )

    def _has_strong_asset(self, matches: MatchedAssetSet) -> bool:
        if len(matches.products) == 1:
            return True
        return matches.products[0].score >= self.settings.strong_product_score

    @staticmethod
    def _base_reasons(requirements: BrandRequirements, matches: MatchedAssetSet) -> list[str]:
        reasons = []
        if requirements.product_mentioned:
            reasons.append(f"Product mentioned: {', '.join(requirements.product_names) or 'generic'}")
        if requirements.logo_required:
            logo_type = requirements.logo_type.value if requirements.logo_type else "primary"
            reasons.append(f"Logo required: {logo_type} ({requirements.branding_visibility.value})")
        if requirements.scene_type != SceneType.STANDARD:
            reasons.append(f"Scene type: {requirements.scene_type.value}")
        if requirements.output_type == OutputType.IMAGE:
            reasons.append("Output type: static image")
        reasons.append(
            f"Matched assets: {len(matches.products)} products, {len(matches.logos)} logos, "
            f"{len(matches.locations)} locations"
        )
        if matches.error:
            reasons.append(f"Asset matching degraded: {matches.error}")
        return reasons

    @staticmethod
    def _build_steps(path: WorkflowPath, requirements: BrandRequirements) -> list[WorkflowStep]:
        logo_optional = not requirements.logo_required

        if path == WorkflowPath.PRODUCT_IMAGE:
            return [
                _step("Generate Environment", "environment_generator", "clean_prompt", "background_image"),
                _step("Compose Products", "composition_engine", "background_image + products", "composed_image"),
                _step("Add Logo Overlay", "composition_engine", "composed_image", "final_image", logo_optional),
            ]
        if path == WorkflowPath.PRODUCT_VIDEO:
            return [
                _step("Generate Environment", "environment_generator", "clean_prompt", "background_image"),
                _step("Compose Products", "composition_engine", "background_image + products", "composed_image"),
                _step("Animate Image", "image_to_video", "composed_image", "video"),
                _step("Add Logo Overlay", "logo_composition", "video", "final_video", logo_optional),
            ]
        if path == WorkflowPath.PRODUCT_HERO:
            return [
                _step("Animate Product Photo", "image_to_video", "product_asset", "video"),
                _step("Add Logo Overlay", "logo_composition", "video", "final_video", logo_optional),
            ]
        if path == WorkflowPath.BRAND_ASSET_DIRECT:
            return [
                _step("Animate Location", "image_to_video", "location_asset", "video"),
                _step("Add Logo Overlay", "logo_composition", "video", "final_video", logo_optional),
            ]
        if path == WorkflowPath.LOGO_OVERLAY_ONLY:
            return [
                _step("AI Generation", "video_generator", "visual_direction", "video"),
                _step("Add Logo Overlay", "logo_composition", "video", "final_video"),
            ]
        return [_step("AI Generation", "video_generator", "visual_direction", "video")]
