"""Composition Engine - layers real product photos and logos onto a generated background."""

import io
import time
from typing import Any, Callable, Optional

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from brandscene.core.config import Settings
from brandscene.models.schemas import (
    Bounds,
    CompositionRequest,
    CompositionResult,
    EnvironmentConfig,
    FlipMode,
    LayerBounds,
    LogoCompositionConfig,
    LogoPlacement,
    ProductAnchor,
    ProductPlacement,
)
from brandscene.services.logo_placement import LogoPlacementCalculator
from brandscene.storage.blob_storage import to_data_uri
from brandscene.utils.error_handler import (
    BackgroundFetchError,
    CompositionError,
    ImageFetchError,
    UploadError,
    format_error_message,
    get_fallback_suggestion,
)

CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


class CompositionEngine:
    """
    Composites product layers and a logo overlay onto a cover-fitted background.

    Collaborators are injected as ports:
        fetcher: object with ``fetch(url) -> bytes``
        storage: object with ``upload(data, key, content_type) -> url``
        environment_generator: optional callable turning an EnvironmentConfig
            into a background image URL when the request carries no background
    """

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        fetcher: Any,
        storage: Optional[Any] = None,
        environment_generator: Optional[Callable[[EnvironmentConfig], str]] = None,
        logo_calculator: Optional[LogoPlacementCalculator] = None,
    ):
        """
        Initialize the composition engine.

        Args:
            settings: Application settings
            logger: Logger instance
            fetcher: Image fetch port
            storage: Blob storage port (result is embedded as a data URI when omitted)
            environment_generator: Background generation port
            logo_calculator: Logo placement calculator
        """
        self.settings = settings
        self.logger = logger
        self.fetcher = fetcher
        self.storage = storage
        self.environment_generator = environment_generator
        self.logo_calculator = logo_calculator or LogoPlacementCalculator(settings, logger)

    def compose(self, request: CompositionRequest) -> CompositionResult:
        """
        Compose one scene image.

        Layer fetch failures drop that layer only. A missing background or an
        unexpected raster error fails the composition. Nothing is raised.

        Args:
            request: Composition request

        Returns:
            CompositionResult with the image URL, encoded bytes and layer bounds
        """
        width = request.output.width
        height = request.output.height
        warnings: list[str] = []
        environment_prompt = request.environment.prompt if request.environment else ""

        self.logger.info(f"Composing scene {request.scene_id}: {len(request.products)} product layer(s)")
        start_time = time.time()

        try:
            # 1. Background, cover-fitted to the output canvas
            canvas = self._load_background(request)

            # 2. Product layers in ascending z order
            layer_bounds: list[LayerBounds] = []
            for placement in sorted(request.products, key=lambda p: p.z_index):
                try:
                    layer, bounds, offset = self._render_product(placement, width, height)
                except ImageFetchError as e:
                    message = f"Skipped product layer {placement.asset_id}: {e}"
                    self.logger.warning(
                        format_error_message(
                            "Fetching product layer",
                            e,
                            context={"scene_id": request.scene_id, "asset_id": placement.asset_id},
                            suggestion=get_fallback_suggestion("Image Fetch", e),
                        )
                    )
                    warnings.append(message)
                    continue

                canvas = self._paste(canvas, layer, offset)
                layer_bounds.append(
                    LayerBounds(layer_id=placement.asset_id, kind="product", z_index=placement.z_index, bounds=bounds)
                )

            # 3. Logo overlay on top, clear of the product regions
            if request.logo_overlay:
                canvas = self._apply_logo(request, canvas, layer_bounds, warnings)

            # 4. Encode and publish
            image_bytes, content_type = self._encode(canvas, request.output.format, request.output.quality)
            image_url = self._publish(request.scene_id, image_bytes, content_type, warnings)

        except BackgroundFetchError as e:
            self.logger.error(
                format_error_message(
                    "Fetching background",
                    e,
                    context={"scene_id": request.scene_id},
                    suggestion=get_fallback_suggestion("Composition", e),
                )
            )
            return CompositionResult(
                success=False,
                width=width,
                height=height,
                environment_prompt=environment_prompt,
                warnings=warnings,
                error=f"Background unavailable: {e}",
            )
        except Exception as e:
            self.logger.error(
                format_error_message(
                    "Composing scene image",
                    e,
                    context={"scene_id": request.scene_id},
                    suggestion=get_fallback_suggestion("Composition", e),
                )
            )
            return CompositionResult(
                success=False,
                width=width,
                height=height,
                environment_prompt=environment_prompt,
                warnings=warnings,
                error=str(e),
            )

        elapsed = time.time() - start_time
        self.logger.info(
            f"✅ Composed scene {request.scene_id} in {elapsed:.2f}s "
            f"({len(layer_bounds)} layer(s), {len(warnings)} warning(s))"
        )
        return CompositionResult(
            success=True,
            image_url=image_url,
            image=image_bytes,
            width=width,
            height=height,
            layer_bounds=layer_bounds,
            environment_prompt=environment_prompt,
            warnings=warnings,
        )

    # =========================================================================
    # Background
    # =========================================================================

    def _load_background(self, request: CompositionRequest) -> Image.Image:
        url = request.background_url
        if not url and request.environment and self.environment_generator:
            try:
                url = self.environment_generator(request.environment)
            except Exception as e:
                raise BackgroundFetchError(f"Environment generation failed: {e}") from e

        if not url:
            raise BackgroundFetchError("No background URL and no environment generator available")

        try:
            data = self.fetcher.fetch(url)
        except ImageFetchError as e:
            raise BackgroundFetchError(str(e), url=e.url, status=e.status) from e

        try:
            image = self._decode(data, url)
        except ImageFetchError as e:
            raise BackgroundFetchError(str(e), url=url) from e

        size = (request.output.width, request.output.height)
        return ImageOps.fit(image.convert("RGBA"), size, method=Image.Resampling.LANCZOS)

    # =========================================================================
    # Product layers
    # =========================================================================

    def _render_product(
        self, placement: ProductPlacement, canvas_width: int, canvas_height: int
    ) -> tuple[Image.Image, Bounds, tuple[int, int]]:
        """
        Render one product layer.

        Returns:
            (layer image, subject bounds on the canvas, paste offset of the layer image)
        """
        image = self._decode(self.fetcher.fetch(placement.asset_url), placement.asset_url).convert("RGBA")

        width, height = self.fit_product_size(
            image.size, placement.scale, placement.max_width, placement.max_height, canvas_width, canvas_height
        )
        image = image.resize((width, height), Image.Resampling.LANCZOS)

        if placement.rotation:
            image = image.rotate(-placement.rotation, resample=Image.Resampling.BICUBIC, expand=True)
        if placement.flip == FlipMode.HORIZONTAL:
            image = ImageOps.mirror(image)
        elif placement.flip == FlipMode.VERTICAL:
            image = ImageOps.flip(image)

        width, height = image.size
        x, y = self.anchor_position(
            placement.position.x, placement.position.y, placement.position.anchor, width, height, canvas_width, canvas_height
        )
        bounds = Bounds(x=x, y=y, width=width, height=height)

        if placement.shadow.enabled:
            layer, pad = self._with_shadow(image, placement.shadow.blur, placement.shadow.opacity)
            return layer, bounds, (x - pad, y - pad)
        return image, bounds, (x, y)

    @staticmethod
    def fit_product_size(
        intrinsic: tuple[int, int],
        scale: float,
        max_width: Optional[float],
        max_height: Optional[float],
        canvas_width: int,
        canvas_height: int,
    ) -> tuple[int, int]:
        """Apply scale, then clamp to percent-of-canvas limits keeping the aspect ratio."""
        width = intrinsic[0] * scale
        height = intrinsic[1] * scale
        aspect = width / height if height else 1.0

        if max_width:
            limit = canvas_width * max_width / 100
            if width > limit:
                width = limit
                height = width / aspect
        if max_height:
            limit = canvas_height * max_height / 100
            if height > limit:
                height = limit
                width = height * aspect

        return max(1, round(width)), max(1, round(height))

    @staticmethod
    def anchor_position(
        x_percent: float,
        y_percent: float,
        anchor: ProductAnchor,
        width: int,
        height: int,
        canvas_width: int,
        canvas_height: int,
    ) -> tuple[int, int]:
        """Horizontal centre on x%; y% is the top edge, bottom edge or centre depending on the anchor."""
        x = round(canvas_width * x_percent / 100 - width / 2)
        base_y = canvas_height * y_percent / 100

        if anchor == ProductAnchor.TOP_CENTER:
            y = base_y
        elif anchor == ProductAnchor.BOTTOM_CENTER:
            y = base_y - height
        else:
            y = base_y - height / 2

        return x, round(y)

    @staticmethod
    def _with_shadow(image: Image.Image, blur: int, opacity: float) -> tuple[Image.Image, int]:
        """Pad the subject and draw a blurred dark silhouette beneath it. Returns (layer, padding)."""
        offset = round(blur * 0.5)
        pad = blur + offset
        width, height = image.size

        layer = Image.new("RGBA", (width + pad * 2, height + pad * 2), (0, 0, 0, 0))

        alpha = image.getchannel("A").point(lambda a: round(a * opacity))
        silhouette = Image.new("RGBA", image.size, (0, 0, 0, 255))
        silhouette.putalpha(alpha)

        shadow = Image.new("RGBA", layer.size, (0, 0, 0, 0))
        shadow.paste(silhouette, (pad + offset, pad + offset))
        if blur > 0:
            shadow = shadow.filter(ImageFilter.GaussianBlur(radius=blur))

        layer = Image.alpha_composite(layer, shadow)
        subject = Image.new("RGBA", layer.size, (0, 0, 0, 0))
        subject.paste(image, (pad, pad))
        return Image.alpha_composite(layer, subject), pad

    # =========================================================================
    # Logo overlay
    # =========================================================================

    def _apply_logo(
        self,
        request: CompositionRequest,
        canvas: Image.Image,
        layer_bounds: list[LayerBounds],
        warnings: list[str],
    ) -> Image.Image:
        overlay = request.logo_overlay
        try:
            logo = self._decode(self.fetcher.fetch(overlay.asset_url), overlay.asset_url).convert("RGBA")
        except ImageFetchError as e:
            self.logger.warning(
                format_error_message(
                    "Fetching logo",
                    e,
                    context={"scene_id": request.scene_id},
                    suggestion=get_fallback_suggestion("Image Fetch", e),
                )
            )
            warnings.append(f"Skipped logo overlay: {e}")
            return canvas

        margin = request.safe_zone_margin if request.safe_zone_margin is not None else self.settings.safe_zone_margin
        config = LogoCompositionConfig(
            scene_id=request.scene_id,
            scene_duration=1.0,
            width=request.output.width,
            height=request.output.height,
            safe_zone_margin=margin,
            product_regions=[layer.bounds for layer in layer_bounds if layer.kind == "product"],
        )
        placement = LogoPlacement(
            logo_type=overlay.logo_type,
            asset_id=overlay.asset_id,
            asset_url=overlay.asset_url,
            position=overlay.position,
            size=overlay.size,
            opacity=overlay.opacity,
        )
        position = self.logo_calculator.calculate(placement, logo.size, config)

        if position.overlap_unresolved:
            warnings.append("Logo overlaps a product region; no clear corner was available")
        if position.constraint_violation:
            warnings.append(f"Logo does not fit inside the {margin}px safe zone")

        logo = logo.resize((position.width, position.height), Image.Resampling.LANCZOS)
        if position.opacity < 1.0:
            alpha = logo.getchannel("A").point(lambda a: round(a * position.opacity))
            logo.putalpha(alpha)

        layer_bounds.append(
            LayerBounds(
                layer_id=overlay.asset_id or "logo",
                kind="logo",
                z_index=max([layer.z_index for layer in layer_bounds], default=0) + 1,
                bounds=position.bounds,
                overlap_unresolved=position.overlap_unresolved,
                constraint_violation=position.constraint_violation,
            )
        )
        return self._paste(canvas, logo, (position.x, position.y))

    # =========================================================================
    # Raster helpers
    # =========================================================================

    @staticmethod
    def _decode(data: bytes, url: str) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ImageFetchError(f"Not a decodable image: {e}", url=url[:80]) from e
        return image

    @staticmethod
    def _paste(canvas: Image.Image, layer: Image.Image, offset: tuple[int, int]) -> Image.Image:
        """Alpha-composite a layer at an offset; parts outside the canvas are clipped."""
        sheet = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        sheet.paste(layer, offset)
        return Image.alpha_composite(canvas, sheet)

    @staticmethod
    def _encode(canvas: Image.Image, output_format: str, quality: int) -> tuple[bytes, str]:
        fmt = output_format.lower()
        if fmt == "jpg":
            fmt = "jpeg"
        if fmt not in CONTENT_TYPES:
            raise CompositionError(f"Unsupported output format: {output_format}")

        buffer = io.BytesIO()
        if fmt == "jpeg":
            canvas.convert("RGB").save(buffer, format="JPEG", quality=quality)
        elif fmt == "webp":
            canvas.save(buffer, format="WEBP", quality=quality)
        else:
            canvas.save(buffer, format="PNG")
        return buffer.getvalue(), CONTENT_TYPES[fmt]

    def _publish(self, scene_id: str, data: bytes, content_type: str, warnings: list[str]) -> str:
        if self.storage is None:
            return to_data_uri(data, content_type)

        extension = content_type.split("/")[-1]
        key = f"compositions/composed-{scene_id}-{int(time.time() * 1000)}.{extension}"
        try:
            return self.storage.upload(data, key, content_type)
        except UploadError as e:
            self.logger.warning(
                format_error_message(
                    "Uploading composition",
                    e,
                    context={"scene_id": scene_id},
                    suggestion=get_fallback_suggestion("Upload", e),
                )
            )
            warnings.append(f"Upload failed, embedded as data URI: {e}")
            return to_data_uri(data, content_type)
