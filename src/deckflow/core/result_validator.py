"""Interpretation of normalised model output against the expected shape.

Slide Decks
-----------
The text must decode as JSON.  The decoded value must be an array of objects;
a single object of the form ``{"slides": [...]}`` is unwrapped first, because
JSON-mode models often insist on an object at the top level.  The array
length must equal the requested slide count exactly.

Failure classes:

- text that is not JSON, or JSON that is not an array of objects
  → :class:`MalformedOutput`
- an array of objects with the wrong length → :class:`ShapeMismatch`

Per-field Policy
----------------
Individual slides are read best-effort by the validators on
:class:`~deckflow.core.models.Slide`.  A slide that lacks a field, or has
one of the wrong type, is repaired with a neutral default instead of failing
the whole deck:

========  ==========================================  ===============
Field     Accepted                                    Fallback
========  ==========================================  ===============
title     string                                      ``""``
content   list of strings (others are stringified),   ``()``
          or a single string (one bullet)
layout    non-empty string                            ``"content"``
notes     string                                      ``""``
========  ==========================================  ===============

Bullet counts outside 3-6 are kept as-is.  Every repair or deviation is
recorded in :attr:`SlideDeck.warnings` and logged at WARNING, so callers can
see exactly how loose a given deck was.

Diagrams
--------
Any non-empty text is accepted as a :class:`DiagramDescription`.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from deckflow.core.errors import MalformedOutput, ShapeMismatch
from deckflow.core.models import DiagramDescription, Slide, SlideDeck

logger = logging.getLogger(__name__)

NOT_AN_ARRAY_MESSAGE = "Slide data must be a JSON array of slide objects"

_SLIDE_OBJECTS = TypeAdapter(list[dict[str, Any]])


class _SlidesEnvelope(BaseModel):
    slides: list[dict[str, Any]]


def _decode_slide_array(text: str) -> list[dict[str, Any]]:
    try:
        return _SLIDE_OBJECTS.validate_json(text)
    except ValidationError as e:
        if any(error["type"] == "json_invalid" for error in e.errors()):
            logger.error("Invalid JSON from model: %s", text)
            raise MalformedOutput("Failed to parse slide data", raw_text=text) from e
        array_error = e

    try:
        return _SlidesEnvelope.model_validate_json(text).slides
    except ValidationError:
        logger.error("Expected a JSON array of slide objects: %s (%s)", text, array_error)
        raise MalformedOutput(NOT_AN_ARRAY_MESSAGE, raw_text=text) from array_error


def read_slide(item: dict[str, Any], index: int, warnings: list[str]) -> Slide:
    """Build a :class:`Slide` from one decoded object, recording repairs.

    Args:
        item: Decoded slide object.
        index: Position in the deck, used in warning messages.
        warnings: List that receives a message for every repair made.

    Returns:
        The slide with every field populated.
    """
    return Slide.model_validate(item, context={"warnings": warnings, "prefix": f"slides[{index}]"})


def validate_slide_deck(text: str, expected_count: int) -> SlideDeck:
    """Interpret *text* as a deck of exactly *expected_count* slides.

    Args:
        text: Normalised model output.
        expected_count: Slide count requested by the caller.

    Returns:
        The slides in their original order, with best-effort warnings.

    Raises:
        MalformedOutput: If *text* is not a JSON array of objects.
        ShapeMismatch: If the array length differs from *expected_count*.
    """
    items = _decode_slide_array(text)

    if len(items) != expected_count:
        logger.error(
            "Model returned %d slides where %d were requested.", len(items), expected_count
        )
        raise ShapeMismatch(
            f"Shape mismatch: expected {expected_count}, got {len(items)} slides",
            raw_text=text,
        )

    warnings: list[str] = []
    slides = tuple(read_slide(item, index, warnings) for index, item in enumerate(items))
    for warning in warnings:
        logger.warning("Repaired slide field: %s", warning)
    return SlideDeck(slides=slides, warnings=tuple(warnings))


def validate_diagram(text: str) -> DiagramDescription:
    """Accept any non-empty *text* as Mermaid source.

    Raises:
        MalformedOutput: If *text* is empty.
    """
    if not text:
        logger.error("Model returned an empty diagram description.")
        raise MalformedOutput("Model returned an empty diagram", raw_text=text)
    return DiagramDescription(code=text)
