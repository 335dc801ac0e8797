"""
Text normalization for help content.

Raw help text is cleaned by an ordered pipeline of named stages before it is
embedded or uploaded. Each stage is a plain ``str -> str`` function so it can
be tested and recombined on its own.

Default order:
    1. remove_stop_words
    2. strip_unsafe_characters
    3. coerce_ascii            (dropped when keep_unicode=True)
    4. collapse_whitespace
"""

import re
from typing import Callable, Sequence

Stage = Callable[[str], str]

STOP_WORDS = frozenset(
    {
        "a",
        "an",
        "and",
        "are",
        "as",
        "at",
        "be",
        "by",
        "for",
        "from",
        "in",
        "is",
        "it",
        "of",
        "on",
        "or",
        "that",
        "the",
        "this",
        "to",
        "was",
        "will",
        "with",
    }
)

ASCII_SUBSTITUTE = "?"

_UNSAFE_CHARACTERS = re.compile(r"[^\w\s\-_;:$=]")
_NON_ASCII = re.compile(r"[^\x00-\x7f]")
_WHITESPACE_RUN = re.compile(r"\s+")


def remove_stop_words(text: str, stop_words: frozenset[str] = STOP_WORDS) -> str:
    """Drop whitespace-separated tokens that exactly match a stop word (case-sensitive)."""
    return " ".join(word for word in text.split() if word not in stop_words)


def strip_unsafe_characters(text: str) -> str:
    """Remove everything except word characters, whitespace and ``-_;:$=``."""
    return _UNSAFE_CHARACTERS.sub("", text)


def coerce_ascii(text: str, substitute: str = ASCII_SUBSTITUTE) -> str:
    """Replace each non-ASCII character with a single substitute character."""
    return _NON_ASCII.sub(substitute, text)


def collapse_whitespace(text: str) -> str:
    """Collapse tabs, newlines and repeated spaces into single spaces."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


DEFAULT_STAGES: tuple[Stage, ...] = (
    remove_stop_words,
    strip_unsafe_characters,
    coerce_ascii,
    collapse_whitespace,
)

UNICODE_STAGES: tuple[Stage, ...] = (
    remove_stop_words,
    strip_unsafe_characters,
    collapse_whitespace,
)


def normalize(
    raw: str,
    stages: Sequence[Stage] | None = None,
    keep_unicode: bool = False,
) -> str:
    """Run raw help text through the cleaning pipeline.

    Args:
        raw: Text to clean
        stages: Explicit stage list; overrides keep_unicode
        keep_unicode: Let non-ASCII word characters through unchanged

    Returns:
        str: Canonical text for embedding and prompting
    """
    if stages is None:
        stages = UNICODE_STAGES if keep_unicode else DEFAULT_STAGES

    text = raw
    for stage in stages:
        text = stage(text)
    return text
