"""Value types that flow between the pipeline stages."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


@dataclass(frozen=True)
class GenerationRequest:
    """A validated generation request.

    ``options`` always holds every option declared for the use case, with
    defaults already applied.
    """

    requirements: str
    options: dict[str, Any] = field(default_factory=dict)

    def option(self, name: str) -> Any:
        """Return the resolved value of option *name*."""
        return self.options[name]


@dataclass(frozen=True)
class PromptPayload:
    """System and user instructions for one completion call."""

    system_instruction: str
    user_instruction: str


@dataclass(frozen=True)
class RawModelOutput:
    """Text returned by the completion endpoint."""

    text: str
    model_identifier: str


# Per-field repair policy for slides decoded from model output.
MIN_BULLETS = 3
MAX_BULLETS = 6
DEFAULT_LAYOUT = "content"


def _record(info: ValidationInfo, message: str) -> None:
    """Append *message* to the ``warnings`` list in the validation context."""
    context = info.context or {}
    warnings = context.get("warnings")
    if warnings is not None:
        warnings.append(f"{context.get('prefix', 'slide')}.{message}")


class Slide(BaseModel):
    """One slide of an outline.

    Slides decoded from model output are read best-effort: a missing or
    ill-typed field is replaced by its default instead of failing
    validation.  Pass ``context={"warnings": [...], "prefix": "slides[0]"}``
    to :meth:`model_validate` to collect a message for every repair.

    Attributes:
        title: Slide title.
        content: Bullet points, in display order.
        layout: Suggested layout tag (e.g. ``"title"``, ``"comparison"``).
        notes: Speaker notes.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", description="Slide title.")
    content: tuple[str, ...] = Field(default=(), description="Bullet points.")
    layout: str = Field(default=DEFAULT_LAYOUT, description="Suggested layout tag.")
    notes: str = Field(default="", description="Speaker notes.")

    @model_validator(mode="before")
    @classmethod
    def _drop_missing(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data
        for name in cls.model_fields:
            if data.get(name) is None:
                _record(info, f"{name} is missing")
        return {key: value for key, value in data.items() if value is not None}

    @field_validator("title", "notes", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any, info: ValidationInfo) -> str:
        if isinstance(value, str):
            return value
        _record(info, f"{info.field_name} is not a string")
        return ""

    @field_validator("layout", mode="before")
    @classmethod
    def _layout_or_default(cls, value: Any, info: ValidationInfo) -> str:
        if not isinstance(value, str):
            _record(info, "layout is not a string")
            return DEFAULT_LAYOUT
        return value or DEFAULT_LAYOUT

    @field_validator("content", mode="before")
    @classmethod
    def _bullets(cls, value: Any, info: ValidationInfo) -> tuple[str, ...]:
        if isinstance(value, str):
            _record(info, "content is a string, not a list")
            bullets: tuple[str, ...] = (value,)
        elif isinstance(value, (list, tuple)):
            if not all(isinstance(b, str) for b in value):
                _record(info, "content contains non-string bullets")
            bullets = tuple(b if isinstance(b, str) else json.dumps(b) for b in value)
        else:
            _record(info, "content is not a list")
            return ()

        if not MIN_BULLETS <= len(bullets) <= MAX_BULLETS:
            _record(
                info,
                f"content has {len(bullets)} bullets (expected {MIN_BULLETS}-{MAX_BULLETS})",
            )
        return bullets


@dataclass(frozen=True)
class SlideDeck:
    """An ordered outline of slides.

    ``warnings`` lists the per-field repairs made while reading the model
    output.  They are informational and do not invalidate the deck.
    """

    slides: tuple[Slide, ...]
    warnings: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.slides)


@dataclass(frozen=True)
class DiagramDescription:
    """Mermaid source for a diagram."""

    code: str


GenerationResult = Union[SlideDeck, DiagramDescription]
