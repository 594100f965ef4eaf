"""The structured-generation request pipeline.

A request passes through five stages in order::

    validate_request -> build prompt -> ModelInvoker.invoke
        -> normalize_response -> interpret (validate shape)

Each stage raises a :class:`~deckflow.core.errors.PipelineError` on failure
and the first failure ends the run, so a rejected request never reaches the
network.  A run produces exactly one :data:`GenerationResult` or raises
exactly one error.

The differences between slide outlines and diagrams are captured in a
:class:`UseCase`: which options are recognised, which prompt template is
used, which model is called, and how the answer is interpreted.

Usage
-----
::

    use_case = outline_use_case(config.outline_model)
    deck = await run_pipeline(body, use_case, invoker)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from deckflow.core.model_invoker import ModelInvoker
from deckflow.core.models import GenerationRequest, GenerationResult, PromptPayload
from deckflow.core.normalizer import normalize_response
from deckflow.core.prompt_builder import build_diagram_prompt, build_outline_prompt
from deckflow.core.request_validator import (
    DIAGRAM_OPTIONS,
    OUTLINE_OPTIONS,
    OptionSpec,
    validate_request,
)
from deckflow.core.result_validator import validate_diagram, validate_slide_deck

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UseCase:
    """Everything that varies between generation endpoints.

    Attributes:
        name: Short identifier used in log messages.
        title: Sent as the ``X-Title`` attribution header.
        model: Fixed model identifier for this use case.
        options: Request options recognised by the validator.
        build_prompt: Pure function from request to prompt payload.
        interpret: Turns normalised text into a result for the request.
    """

    name: str
    title: str
    model: str
    options: tuple[OptionSpec, ...]
    build_prompt: Callable[[GenerationRequest], PromptPayload]
    interpret: Callable[[str, GenerationRequest], GenerationResult]


def outline_use_case(model: str) -> UseCase:
    """Slide outline generation with slide count, tone and audience options."""
    return UseCase(
        name="outline",
        title="PPT Generator",
        model=model,
        options=OUTLINE_OPTIONS,
        build_prompt=build_outline_prompt,
        interpret=lambda text, request: validate_slide_deck(text, request.option("slide_count")),
    )


def diagram_use_case(model: str) -> UseCase:
    """Mermaid diagram generation from requirements alone."""
    return UseCase(
        name="diagram",
        title="Mermaid Generator",
        model=model,
        options=DIAGRAM_OPTIONS,
        build_prompt=build_diagram_prompt,
        interpret=lambda text, request: validate_diagram(text),
    )


async def run_pipeline(body: Any, use_case: UseCase, invoker: ModelInvoker) -> GenerationResult:
    """Run one request through every stage of *use_case*.

    Args:
        body: Decoded JSON request body.
        use_case: Use case describing options, prompt, model and shape.
        invoker: Model invoker bound to a completion client.

    Returns:
        A :class:`SlideDeck` or :class:`DiagramDescription`.

    Raises:
        InvalidRequest: The body failed validation (no network call made).
        UpstreamFailure: The completion call failed.
        MalformedOutput: The answer could not be decoded.
        ShapeMismatch: The answer decoded but had the wrong shape.
    """
    request = validate_request(body, use_case.options)
    payload = use_case.build_prompt(request)
    raw = await invoker.invoke(payload, use_case.model, headers={"X-Title": use_case.title})
    text = normalize_response(raw.text)
    result = use_case.interpret(text, request)
    logger.info("Completed %s generation with model '%s'.", use_case.name, raw.model_identifier)
    return result
