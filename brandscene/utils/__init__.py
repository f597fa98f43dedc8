"""Utility functions for the Brand Scene Composer."""

from brandscene.utils.error_handler import (
    BackgroundFetchError,
    BrandSceneError,
    CompositionError,
    ConfigurationError,
    ImageFetchError,
    RepositoryUnavailableError,
    UploadError,
    format_error_message,
    get_fallback_suggestion,
)
from brandscene.utils.text_utils import contains_phrase, find_phrases, normalize_text, strip_phrases

__all__ = [
    "BackgroundFetchError",
    "BrandSceneError",
    "CompositionError",
    "ConfigurationError",
    "ImageFetchError",
    "RepositoryUnavailableError",
    "UploadError",
    "format_error_message",
    "get_fallback_suggestion",
    "contains_phrase",
    "find_phrases",
    "normalize_text",
    "strip_phrases",
]
