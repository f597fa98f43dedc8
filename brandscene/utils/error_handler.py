"""Error Handler - typed errors and user-friendly degradation messages."""

from typing import Optional


class BrandSceneError(Exception):
    """Base class for errors raised inside the composition engine."""


class ConfigurationError(BrandSceneError):
    """Malformed configuration. The only error allowed to escape a public call."""


class RepositoryUnavailableError(BrandSceneError):
    """The asset repository could not be queried."""


class ImageFetchError(BrandSceneError):
    """An image could not be downloaded or decoded."""

    def __init__(self, message: str, url: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class BackgroundFetchError(ImageFetchError):
    """The background image of a composition could not be retrieved."""


class CompositionError(BrandSceneError):
    """Raster layering failed."""


class UploadError(BrandSceneError):
    """The composed artifact could not be uploaded to blob storage."""


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a user-friendly error message.

    Args:
        operation: What operation was being performed (e.g., "Composing scene image")
        error: The exception that occurred
        context: Additional context (e.g., {"scene_id": "s1", "asset_id": "a42"})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    error_msg = str(error)

    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error_msg}"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_fallback_suggestion(service: str, error: Exception) -> Optional[str]:
    """
    Get a suggestion describing how a service failure is degraded.

    Args:
        service: Service name ("Asset Matching", "Composition", "Upload", "Image Fetch")
        error: The exception

    Returns:
        Suggestion string or None
    """
    error_msg = str(error).lower()

    if service == "Asset Matching":
        if "timeout" in error_msg or "connection" in error_msg:
            return "Asset repository unreachable. Scene will be routed as if no brand assets matched."
        elif "not found" in error_msg or "no such file" in error_msg:
            return "Asset catalog missing. Check ASSET_CATALOG_PATH. Falling back to standard generation."
        else:
            return "Asset matching failed. Scene degrades to the standard workflow path."

    elif service == "Composition":
        if isinstance(error, BackgroundFetchError) or "background" in error_msg:
            return "Background image unavailable. Composition aborted; regenerate the environment and retry."
        else:
            return "Composition failed. Scene keeps its routing decision without a composed image."

    elif service == "Upload":
        if "permission" in error_msg or "read-only" in error_msg:
            return "Blob storage is not writable. Check BLOB_STORAGE_PATH. Embedding image as data URI."
        else:
            return "Upload failed. Embedding composed image as data URI."

    elif service == "Image Fetch":
        status = getattr(error, "status", None)
        if status == 404:
            return "Asset URL returned 404. Check the asset record in the repository. Layer skipped."
        elif status is not None and status >= 500:
            return "Asset host returned a server error. Try again later. Layer skipped."
        elif "timeout" in error_msg:
            return "Image download timed out. Increase IMAGE_FETCH_TIMEOUT. Layer skipped."
        elif "placeholder" in error_msg or "invalid" in error_msg:
            return "Asset URL is not downloadable. Layer skipped."
        else:
            return "Image download failed. Layer skipped."

    return None
