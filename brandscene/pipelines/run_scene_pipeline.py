"""Scene pipeline orchestrator - visual direction → requirements → assets → path → composition & placements."""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Callable, Optional

from brandscene.core.config import Settings, settings
from brandscene.core.logging_config import configure_from_settings, get_logger
from brandscene.models.schemas import (
    BrandRequirements,
    EnvironmentConfig,
    FrameAnalysis,
    MatchedAssetSet,
    OutputType,
    Overlay,
    SceneDescriptor,
    SceneResult,
    WorkflowDecision,
    WorkflowPath,
)
from brandscene.services.asset_matcher import AssetMatcher, AssetTaxonomy
from brandscene.services.composition_engine import CompositionEngine
from brandscene.services.composition_request_builder import CompositionRequestBuilder
from brandscene.services.image_fetcher import HttpImageFetcher
from brandscene.services.logo_placement import LogoAssetSelector, LogoCompositionService, LogoPlacementCalculator
from brandscene.services.motion_style_detector import MotionStyleDetector
from brandscene.services.overlay_placement import OverlayPlacementEngine
from brandscene.services.project_session import ProjectSession
from brandscene.services.requirement_analyzer import RequirementAnalyzer
from brandscene.services.workflow_router import WorkflowRouter
from brandscene.storage.blob_storage import LocalBlobStorage
from brandscene.storage.repository import JsonAssetRepository
from brandscene.utils.error_handler import format_error_message
from brandscene.utils.parallel_executor import CandidateSelector, ParallelExecutor

COMPOSITING_PATHS = (WorkflowPath.PRODUCT_IMAGE, WorkflowPath.PRODUCT_VIDEO)
STOCK_PATHS = (WorkflowPath.STANDARD, WorkflowPath.LOGO_OVERLAY_ONLY)


class SceneOrchestrator:
    """
    Sequences the engine for one project.

    External collaborators are injected as ports: the asset repository
    (``query_assets``), the image fetcher (``fetch``), blob storage (``upload``),
    an optional environment generator (EnvironmentConfig → background URL) and
    an optional background scorer used when several background candidates are
    generated. The project session is owned by the caller.
    """

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        repository: Any,
        fetcher: Any,
        storage: Optional[Any] = None,
        environment_generator: Optional[Callable[[EnvironmentConfig], str]] = None,
        background_scorer: Optional[Callable[[list[str]], int]] = None,
        session: Optional[ProjectSession] = None,
        taxonomy: Optional[AssetTaxonomy] = None,
    ):
        """
        Initialize the orchestrator and its services.

        Args:
            settings: Application settings
            logger: Logger instance
            repository: Asset repository port
            fetcher: Image fetch port
            storage: Blob storage port
            environment_generator: Background generation port
            background_scorer: Picks the winning background URL index
            session: Project session (a fresh one is created when omitted)
            taxonomy: Asset taxonomy override
        """
        self.settings = settings
        self.logger = logger
        self.session = session or ProjectSession()
        self.environment_generator = environment_generator
        self.background_scorer = background_scorer

        self.analyzer = RequirementAnalyzer(settings, logger)
        self.matcher = AssetMatcher(settings, logger, repository, taxonomy)
        self.router = WorkflowRouter(settings, logger)
        self.motion_detector = MotionStyleDetector(settings, logger)
        self.request_builder = CompositionRequestBuilder(settings, logger)
        self.logo_calculator = LogoPlacementCalculator(settings, logger)
        self.composition_engine = CompositionEngine(
            settings,
            logger,
            fetcher,
            storage=storage,
            environment_generator=environment_generator,
            logo_calculator=self.logo_calculator,
        )
        self.logo_selector = LogoAssetSelector(settings, logger, repository, self.session)
        self.overlay_engine = OverlayPlacementEngine(settings, logger)
        self.executor = ParallelExecutor(settings, logger)
        self.candidate_selector = CandidateSelector(settings, logger, self.executor)

    def analyze_only(self, scene: SceneDescriptor) -> tuple[BrandRequirements, MatchedAssetSet, WorkflowDecision]:
        """
        Analyze, match and route a scene without producing anything.

        Args:
            scene: Scene descriptor

        Returns:
            (requirements, matches, decision)
        """
        requirements = self.analyzer.analyze(scene.visual_direction, scene.narration)
        if requirements.output_type != scene.output_type:
            requirements = requirements.model_copy(update={"output_type": scene.output_type})

        matches = self.matcher.match_assets(requirements)
        decision = self.router.route(requirements, matches)
        return requirements, matches, decision

    def execute(
        self,
        scene: SceneDescriptor,
        overlays: Optional[list[Overlay]] = None,
        frame_analysis: Optional[FrameAnalysis] = None,
        stock_candidates: Optional[list[str]] = None,
    ) -> SceneResult:
        """
        Run the full engine for one scene.

        Args:
            scene: Scene descriptor
            overlays: Text/logo overlays to place
            frame_analysis: Frame analysis for overlay placement
            stock_candidates: Stock item ids in preference order (standard-like paths)

        Returns:
            SceneResult; unexpected errors yield success=False on the standard path
        """
        logger = self.logger.bind(scene_id=scene.scene_id)
        start_time = time.time()
        fps = scene.frame_rate or self.settings.default_fps

        try:
            requirements, matches, decision = self.analyze_only(scene)
            result = SceneResult(
                scene_id=scene.scene_id,
                success=True,
                path=decision.path,
                requirements=requirements,
                matches=matches,
                decision=decision,
            )

            # 1. Composite products onto a generated environment
            if decision.path in COMPOSITING_PATHS:
                request = self.request_builder.build(
                    scene.scene_id,
                    scene.visual_direction,
                    requirements,
                    matches,
                    background_url=self._select_background(scene),
                )
                result.composition = self.composition_engine.compose(request)
                if not result.composition.success:
                    logger.warning(
                        f"Composition failed ({result.composition.error}), degrading "
                        f"{decision.path.value} to {WorkflowPath.STANDARD.value}"
                    )
                    result.metadata["degraded_from"] = decision.path.value
                    result.path = WorkflowPath.STANDARD

            # 2. Motion plan for animated output
            if requirements.output_type == OutputType.VIDEO:
                result.motion = self.motion_detector.detect(scene.visual_direction, requirements)

            # 3. Logo overlays for video output (stills carry the logo inside the composition)
            if requirements.output_type == OutputType.VIDEO and (
                requirements.logo_required or requirements.product_mentioned
            ):
                logo_service = LogoCompositionService(
                    self.settings, logger, self.logo_selector, self.logo_calculator
                )
                product_regions = result.composition.product_regions if result.composition else []
                config = logo_service.build_config(
                    scene.scene_id,
                    requirements,
                    scene.duration_seconds,
                    fps,
                    product_regions=product_regions,
                )
                result.logo_placements = logo_service.build_placements(config)

            # 4. Text overlays
            if overlays:
                result.overlays = self.overlay_engine.calculate_placements(
                    overlays, frame_analysis, scene.duration_seconds, fps
                )

            # 5. Stock footage for scenes without brand compositing
            if result.path in STOCK_PATHS and stock_candidates:
                result.stock_item_id = self.session.claim_first_unused(stock_candidates)
                if result.stock_item_id is None:
                    logger.warning("Every stock candidate was already used in this project")

        except Exception as e:
            logger.error(format_error_message("Processing scene", e, context={"scene_id": scene.scene_id}))
            return SceneResult(
                scene_id=scene.scene_id,
                success=False,
                path=WorkflowPath.STANDARD,
                execution_time_ms=int((time.time() - start_time) * 1000),
                error=str(e),
            )

        result.execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(f"✅ Scene {scene.scene_id} done: {result.path.value} in {result.execution_time_ms}ms")
        return result

    def execute_project(
        self,
        scenes: list[SceneDescriptor],
        project_id: str = "default",
        overlays: Optional[dict[str, list[Overlay]]] = None,
        frame_analyses: Optional[dict[str, FrameAnalysis]] = None,
        stock_candidates: Optional[dict[str, list[str]]] = None,
    ) -> list[SceneResult]:
        """
        Run every scene of a project in parallel.

        The project session is reset first; scenes then share its stock
        deduplication set and logo cache.

        Args:
            scenes: Scene descriptors
            project_id: Project identifier
            overlays: Overlays keyed by scene id
            frame_analyses: Frame analyses keyed by scene id
            stock_candidates: Stock candidates keyed by scene id

        Returns:
            One SceneResult per scene, in input order
        """
        self.session.reset(project_id)
        overlays = overlays or {}
        frame_analyses = frame_analyses or {}
        stock_candidates = stock_candidates or {}

        def make_task(scene: SceneDescriptor) -> Callable[[], SceneResult]:
            def run_scene() -> SceneResult:
                return self.execute(
                    scene,
                    overlays=overlays.get(scene.scene_id),
                    frame_analysis=frame_analyses.get(scene.scene_id),
                    stock_candidates=stock_candidates.get(scene.scene_id),
                )

            return run_scene

        outcomes = self.executor.execute_batch(
            [make_task(scene) for scene in scenes],
            task_names=[f"scene {scene.scene_id}" for scene in scenes],
        )

        results = []
        for scene, (result, error) in zip(scenes, outcomes):
            if error is not None:
                result = SceneResult(scene_id=scene.scene_id, success=False, error=str(error))
            results.append(result)
        return results

    def _select_background(self, scene: SceneDescriptor) -> Optional[str]:
        """Generate background candidates when more than one is configured and keep the best."""
        count = self.settings.background_candidates
        if self.environment_generator is None or count <= 1:
            return None

        environment = self.request_builder.build_environment(scene.visual_direction)
        tasks = [lambda: self.environment_generator(environment) for _ in range(count)]
        return self.candidate_selector.generate_and_select(tasks, scorer=self.background_scorer)


def load_scenes(path: Path) -> list[SceneDescriptor]:
    """Load scene descriptors from a JSON file (a list, or an object with a "scenes" list)."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    records = data.get("scenes", []) if isinstance(data, dict) else data
    return [SceneDescriptor.model_validate(record) for record in records]


def main():
    """Main entrypoint for the scene pipeline."""
    parser = argparse.ArgumentParser(
        description="Brand Scene Composer - Scene Pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scenes",
        type=str,
        required=True,
        help="JSON file with scene descriptors (scene_id, visual_direction, narration, ...)",
    )
    parser.add_argument(
        "--catalog",
        type=str,
        default=None,
        help=f"Brand asset catalog JSON (default: {settings.asset_catalog_path})",
    )
    parser.add_argument(
        "--project-id",
        type=str,
        default="default",
        help="Project identifier used for stock deduplication (default: default)",
    )
    parser.add_argument(
        "--analyze-only",
        action="store_true",
        help="Only analyze, match and route each scene (no composition or placement)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write scene results as JSON to this file",
    )

    args = parser.parse_args()

    configure_from_settings(settings)
    logger = get_logger(__name__, project_id=args.project_id)

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} - Scene Pipeline")
    logger.info(f"Scenes: {args.scenes}")
    logger.info(f"Mode: {'ANALYZE ONLY' if args.analyze_only else 'FULL'}")
    logger.info("=" * 60)

    try:
        scenes = load_scenes(Path(args.scenes))
        repository = JsonAssetRepository(settings, logger, Path(args.catalog) if args.catalog else None)
        orchestrator = SceneOrchestrator(
            settings,
            logger,
            repository,
            HttpImageFetcher(settings, logger),
            storage=LocalBlobStorage(settings, logger),
        )

        if args.analyze_only:
            payload = []
            for scene in scenes:
                requirements, matches, decision = orchestrator.analyze_only(scene)
                logger.info(f"{scene.scene_id}: {decision.path.value} (confidence {requirements.confidence:.2f})")
                for reason in decision.reasons:
                    logger.info(f"   - {reason}")
                payload.append(
                    {
                        "scene_id": scene.scene_id,
                        "requirements": requirements.model_dump(mode="json"),
                        "matches": matches.model_dump(mode="json"),
                        "decision": decision.model_dump(mode="json"),
                    }
                )
        else:
            results = orchestrator.execute_project(scenes, project_id=args.project_id)
            succeeded = sum(1 for r in results if r.success)
            logger.info("=" * 60)
            logger.info(f"PROJECT COMPLETE: {succeeded}/{len(results)} scenes succeeded")
            logger.info("=" * 60)
            for r in results:
                status = "✅" if r.success else "❌"
                logger.info(f"{status} {r.scene_id}: {r.path.value} ({r.execution_time_ms}ms)")
                if r.error:
                    logger.info(f"   Error: {r.error}")
            payload = [r.model_dump(mode="json", exclude={"composition": {"image"}}) for r in results]

        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            logger.info(f"Results written to: {output_path}")

        return 0

    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        logger.error(f"\n❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
