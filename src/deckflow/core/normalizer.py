"""Removal of wrapper artifacts from raw model output.

Models frequently wrap their answer in a Markdown code fence even when told
not to.  :func:`normalize_response` removes the recognised wrappers listed in
:data:`FENCE_PATTERNS` and trims surrounding whitespace.

Fence markers are only removed when the text *begins* with one.  Text that
starts with real content is left alone apart from trimming, so a fence quoted
inside otherwise clean output survives.

Normalisation is idempotent: once the markers are gone the text no longer
begins with a fence, so a second pass only trims.
"""

from __future__ import annotations

import re

# Language tags recognised directly after an opening fence.  Any other word
# glued to the backticks is content (e.g. "```graph TD") and is kept.
LANGUAGE_TAGS: tuple[str, ...] = ("json", "mermaid", "javascript", "js", "text", "plaintext")

# Ordered: the tagged form must be removed before the bare form, otherwise
# the language tag would be left behind as stray text.
FENCE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    # ```json, ```mermaid ... (a recognised tag directly after the backticks)
    (
        "tagged",
        re.compile(
            r"```(?:" + "|".join(map(re.escape, LANGUAGE_TAGS)) + r")(?![\w+.-])",
            re.IGNORECASE,
        ),
    ),
    # ``` on its own
    ("bare", re.compile(r"```")),
)


def starts_with_fence(text: str) -> bool:
    """Return ``True`` if *text* opens with a recognised fence marker."""
    stripped = text.lstrip()
    return any(pattern.match(stripped) for _, pattern in FENCE_PATTERNS)


def normalize_response(text: str) -> str:
    """Strip fence markers and surrounding whitespace from model output.

    Args:
        text: Raw text returned by the model.

    Returns:
        The normalised text.  Interior content is unchanged apart from the
        removed markers.
    """
    if starts_with_fence(text):
        for _, pattern in FENCE_PATTERNS:
            text = pattern.sub("", text)
    return text.strip()
