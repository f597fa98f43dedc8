"""Text utility functions for keyword classification."""

import re
from typing import Iterable

_WHITESPACE = re.compile(r"\s+")


def normalize_text(*parts: str) -> str:
    """
    Join text fragments into one lower-cased, whitespace-collapsed string.

    Args:
        *parts: Text fragments (None-safe: empty values are skipped)

    Returns:
        Normalized text
    """
    joined = " ".join(p for p in parts if p)
    return _WHITESPACE.sub(" ", joined.lower()).strip()


def phrase_pattern(phrase: str) -> re.Pattern:
    """Compile a word-bounded pattern for a phrase, tolerating a plural suffix."""
    escaped = r"\s+".join(re.escape(token) for token in phrase.lower().split())
    return re.compile(rf"(?<![\w-]){escaped}(?:s|es)?(?![\w-])")


def contains_phrase(text: str, phrase: str) -> bool:
    """
    Check whether a phrase appears in normalized text as whole words.

    Args:
        text: Normalized text (see normalize_text)
        phrase: Phrase to look for

    Returns:
        True if the phrase (or its simple plural) appears
    """
    return phrase_pattern(phrase).search(text) is not None


def find_phrases(text: str, phrases: Iterable[str]) -> list[str]:
    """
    Return the phrases found in text, in the order they were given.

    Args:
        text: Normalized text (see normalize_text)
        phrases: Candidate phrases

    Returns:
        Phrases that appear as whole words
    """
    return [p for p in phrases if contains_phrase(text, p)]


def strip_phrases(text: str, phrases: Iterable[str]) -> str:
    """Remove every occurrence of the given phrases (case-insensitive) and collapse whitespace."""
    cleaned = text
    for phrase in phrases:
        escaped = r"\s+".join(re.escape(token) for token in phrase.split())
        cleaned = re.sub(rf"\b{escaped}(?:s|es)?\b", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s+([,.;:])", r"\1", cleaned)
    cleaned = re.sub(r"([,.;:])(?:\s*[,.;:])+", r"\1", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip(" ,;:")
