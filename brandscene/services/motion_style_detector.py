"""Motion Style Detector - classifies camera and scene motion for image-to-video animation."""

from typing import Any, Optional

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    BrandRequirements,
    CameraMovement,
    EnvironmentalEffects,
    MotionDetection,
    MotionStyle,
    Visibility,
)
from brandscene.utils.text_utils import contains_phrase, find_phrases, normalize_text

ZOOM_IN_CUES = ["zoom in", "zooming in", "zooming into", "push in"]
ZOOM_OUT_CUES = ["zoom out", "zooming out", "pull back", "reveal full"]
PAN_CUES = ["pan", "panning", "tracking", "dolly"]
REVEAL_CUES = ["reveal", "revealing", "emerge", "appear", "enter"]
STATIC_CUES = ["static", "still", "frozen", "no movement"]
ENVIRONMENTAL_CUES = [
    "plant", "leaves", "nature", "organic", "breeze", "wind", "light shift", "sunlight",
    "golden hour", "dust", "particles", "ambient", "atmosphere", "life", "living",
    "swaying", "flicker", "shimmer", "glow",
]
MINIMAL_INTENSITY_CUES = ["gentle", "soft", "barely", "subtle"]
MEDIUM_INTENSITY_CUES = ["moderate", "noticeable"]

SCENE_TYPE_MOTION: dict[str, MotionDetection] = {
    "hook": MotionDetection(
        style=MotionStyle.ZOOM_IN, intensity="low", camera_movement=CameraMovement(direction="push")
    ),
    "problem": MotionDetection(
        style=MotionStyle.SUBTLE, intensity="low", camera_movement=CameraMovement(direction="left")
    ),
    "agitation": MotionDetection(
        style=MotionStyle.SUBTLE, intensity="low", camera_movement=CameraMovement(direction="push")
    ),
    "solution": MotionDetection(style=MotionStyle.REVEAL, intensity="low", reveal_direction="center"),
    "benefit": MotionDetection(
        style=MotionStyle.ENVIRONMENTAL,
        intensity="low",
        environmental_effects=EnvironmentalEffects(light_flicker=True),
    ),
    "product": MotionDetection(
        style=MotionStyle.SUBTLE, intensity="minimal", camera_movement=CameraMovement(direction="push")
    ),
    "testimonial": MotionDetection(
        style=MotionStyle.SUBTLE, intensity="minimal", camera_movement=CameraMovement(direction="right")
    ),
    "cta": MotionDetection(
        style=MotionStyle.ZOOM_IN, intensity="low", camera_movement=CameraMovement(direction="push")
    ),
}


class MotionStyleDetector:
    """Pure classifier over visual-direction text."""

    def __init__(self, settings: Settings, logger: Any):
        self.settings = settings
        self.logger = logger

    def detect(self, visual_direction: str, requirements: Optional[BrandRequirements] = None) -> MotionDetection:
        """
        Detect the motion style of a scene.

        Args:
            visual_direction: Free-text visual direction
            requirements: Optional analyzed requirements (product-aware adjustments)

        Returns:
            MotionDetection with the signals that fired
        """
        text = normalize_text(visual_direction)
        signals: list[str] = []
        style = MotionStyle.SUBTLE
        intensity = "low"
        camera: Optional[CameraMovement] = None
        effects: Optional[EnvironmentalEffects] = None
        reveal_direction: Optional[str] = None

        zoom_in = find_phrases(text, ZOOM_IN_CUES)
        zoom_out = find_phrases(text, ZOOM_OUT_CUES)
        pan = find_phrases(text, PAN_CUES)
        reveal = find_phrases(text, REVEAL_CUES)
        static = find_phrases(text, STATIC_CUES)
        environmental = find_phrases(text, ENVIRONMENTAL_CUES)

        if zoom_in:
            style = MotionStyle.ZOOM_IN
            camera = CameraMovement(direction="push")
            signals.append(f"zoom_in:{zoom_in[0]}")
        elif zoom_out:
            style = MotionStyle.ZOOM_OUT
            camera = CameraMovement(direction="pull")
            signals.append(f"zoom_out:{zoom_out[0]}")
        elif pan:
            style = MotionStyle.PAN
            camera = CameraMovement(direction=self._pan_direction(text))
            signals.append(f"pan:{pan[0]}")
        elif reveal:
            style = MotionStyle.REVEAL
            reveal_direction = self._reveal_direction(text)
            signals.append(f"reveal:{reveal[0]}")
        elif static:
            style = MotionStyle.STATIC
            signals.append(f"static:{static[0]}")
        elif environmental:
            style = MotionStyle.ENVIRONMENTAL
            effects = self._environmental_effects(text)
            signals.append(f"environmental:{environmental[0]}")

        if requirements is not None and requirements.product_mentioned and style == MotionStyle.SUBTLE:
            if environmental:
                style = MotionStyle.ENVIRONMENTAL
                effects = self._environmental_effects(text)
                signals.append("product:environmental")
            else:
                camera = CameraMovement(direction="push")
                signals.append("product:push")

        if requirements is not None and requirements.product_visibility == Visibility.FEATURED:
            intensity = "minimal"
            signals.append("featured:minimal")
            if style == MotionStyle.ENVIRONMENTAL:
                style = MotionStyle.SUBTLE
                effects = None
                camera = CameraMovement(direction="push")

        minimal = find_phrases(text, MINIMAL_INTENSITY_CUES)
        medium = find_phrases(text, MEDIUM_INTENSITY_CUES)
        if minimal:
            intensity = "minimal"
            signals.append(f"intensity:{minimal[0]}")
        elif medium:
            intensity = "medium"
            signals.append(f"intensity:{medium[0]}")

        return MotionDetection(
            style=style,
            intensity=intensity,
            camera_movement=camera,
            environmental_effects=effects,
            reveal_direction=reveal_direction,
            signals=signals,
        )

    def detect_from_scene_type(self, scene_type: str) -> MotionDetection:
        """Look up the default motion for a script role (hook, problem, solution, ...)."""
        default = MotionDetection(
            style=MotionStyle.SUBTLE, intensity="low", camera_movement=CameraMovement(direction="push")
        )
        return SCENE_TYPE_MOTION.get(scene_type.lower(), default).model_copy(deep=True)

    @staticmethod
    def _pan_direction(text: str) -> str:
        if contains_phrase(text, "left") or contains_phrase(text, "leftward"):
            return "left"
        if contains_phrase(text, "right") or contains_phrase(text, "rightward"):
            return "right"
        if contains_phrase(text, "up") or contains_phrase(text, "upward"):
            return "up"
        if contains_phrase(text, "down") or contains_phrase(text, "downward"):
            return "down"
        return "right"

    @staticmethod
    def _reveal_direction(text: str) -> str:
        if find_phrases(text, ["from left", "from the left", "slide in left"]):
            return "left"
        if find_phrases(text, ["from right", "from the right", "slide in right"]):
            return "right"
        if find_phrases(text, ["from bottom", "from below", "rise", "rising"]):
            return "bottom"
        if find_phrases(text, ["from top", "from above", "descend", "descending"]):
            return "top"
        return "center"

    @staticmethod
    def _environmental_effects(text: str) -> EnvironmentalEffects:
        return EnvironmentalEffects(
            plant_movement=bool(find_phrases(text, ["plant", "leaves", "sway", "swaying", "breeze"])),
            light_flicker=bool(
                find_phrases(text, ["light", "sun", "sunlight", "golden", "shimmer", "flicker"])
            ),
            particle_dust=bool(find_phrases(text, ["dust", "particles", "floating"])),
        )
