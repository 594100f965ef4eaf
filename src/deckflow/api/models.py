"""Pydantic request and response models for the Deckflow API.

Request bodies are read as raw JSON and checked by
:mod:`deckflow.core.request_validator`, which produces the exact error
messages the browser clients display and rejects look-alike values such as
``"4"`` for ``slideCount``.  :class:`OutlineRequest` and
:class:`DiagramRequest` describe those bodies for the OpenAPI documentation.

Models
------
OutlineRequest
    Body of ``POST /preview-ppt``.
DiagramRequest
    Body of ``POST /generate-mermaid``.
OutlineResponse
    Body of a successful ``POST /preview-ppt``.
DiagramResponse
    Body of a successful ``POST /generate-mermaid``.
ErrorResponse
    Body of every 4xx/5xx response.
HealthResponse
    Body of ``GET /health``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from deckflow.core.models import DiagramDescription, Slide, SlideDeck
from deckflow.core.request_validator import MIN_REQUIREMENTS_LENGTH


class DiagramRequest(BaseModel):
    """Request body for ``POST /generate-mermaid``.

    Attributes:
        requirements: Free-text description of the diagram.
    """

    requirements: str = Field(
        ...,
        min_length=MIN_REQUIREMENTS_LENGTH,
        description="What the generated artifact should cover.",
        examples=["Create a flowchart for a user login process"],
    )


class OutlineRequest(DiagramRequest):
    """Request body for ``POST /preview-ppt``.

    Attributes:
        requirements: Free-text description of the presentation.
        slide_count: Exact number of slides to generate (wire name
            ``slideCount``).
        tone: Writing tone of the slides.
        audience: Intended audience.
    """

    model_config = ConfigDict(populate_by_name=True)

    slide_count: Literal[4, 6, 8] = Field(
        default=6,
        alias="slideCount",
        description="Number of slides to generate.",
    )
    tone: Literal["persuasive", "professional", "casual"] = Field(
        default="persuasive",
        description="Tone of the presentation.",
    )
    audience: Literal["general public", "executives", "students"] = Field(
        default="general public",
        description="Target audience.",
    )


def request_body_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Return an ``openapi_extra`` entry documenting *model* as the JSON body."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


class OutlineResponse(BaseModel):
    """Successful outline response."""

    slides: list[Slide] = Field(
        ...,
        description="Exactly slideCount slides, in presentation order.",
    )

    @classmethod
    def from_deck(cls, deck: SlideDeck) -> OutlineResponse:
        return cls(slides=list(deck.slides))


class DiagramResponse(BaseModel):
    """Successful diagram response."""

    model_config = ConfigDict(populate_by_name=True)

    mermaid_code: str = Field(
        ...,
        alias="mermaidCode",
        description="Generated Mermaid source.",
    )

    @classmethod
    def from_diagram(cls, diagram: DiagramDescription) -> DiagramResponse:
        return cls(mermaid_code=diagram.code)


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint."""

    error: str = Field(..., description="Human-readable error message.")


class HealthResponse(BaseModel):
    """Liveness probe body."""

    status: str = Field(default="healthy")
    timestamp: str = Field(..., description="Current UTC time, ISO-8601.")
