"""Pipeline orchestrators for the Brand Scene Composer."""

from brandscene.pipelines.run_scene_pipeline import SceneOrchestrator, load_scenes, main

__all__ = ["SceneOrchestrator", "load_scenes", "main"]
