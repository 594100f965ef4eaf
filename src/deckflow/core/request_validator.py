"""Validation of incoming generation requests.

Requests arrive as decoded JSON (plain dictionaries).  Validation happens here,
before any prompt is built or any network call is made, so that the caller
gets a specific, actionable message for each mistake.

Rules
-----
- ``requirements`` must be a string whose stripped length is at least
  :data:`MIN_REQUIREMENTS_LENGTH` characters.
- Each declared option is optional.  A missing or ``null`` value resolves to
  the option's default.  A present value must be a member of the option's
  allowed set *and* have the same type as the default, so ``"4"`` or ``4.0``
  are not accepted as a slide count.
- Keys that are not declared options are ignored.

The option tables for the two use cases live here as well, since they are the
single source of truth for both validation and the prompt defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from deckflow.core.errors import InvalidRequest
from deckflow.core.models import GenerationRequest

logger = logging.getLogger(__name__)

MIN_REQUIREMENTS_LENGTH = 10


@dataclass(frozen=True)
class OptionSpec:
    """A named request option restricted to an enumerated set of values.

    Attributes:
        name: Key used in :attr:`GenerationRequest.options`.
        field: Key expected in the JSON request body.
        label: Human-readable name used in error messages.
        allowed: Accepted values, in display order.
        default: Value used when the option is absent.
    """

    name: str
    field: str
    label: str
    allowed: tuple[Any, ...]
    default: Any

    def resolve(self, body: Mapping[str, Any]) -> Any:
        """Return the validated value of this option from *body*.

        Raises:
            InvalidRequest: If a value is present but not allowed.
        """
        value = body.get(self.field)
        if value is None:
            return self.default
        if type(value) is not type(self.default) or value not in self.allowed:
            allowed = ", ".join(str(v) for v in self.allowed)
            raise InvalidRequest(f"{self.label} must be one of: {allowed}")
        return value


# ---------------------------------------------------------------------------
# Option tables.
# ---------------------------------------------------------------------------

SLIDE_COUNT = OptionSpec(
    name="slide_count",
    field="slideCount",
    label="Slide count",
    allowed=(4, 6, 8),
    default=6,
)
TONE = OptionSpec(
    name="tone",
    field="tone",
    label="Tone",
    allowed=("persuasive", "professional", "casual"),
    default="persuasive",
)
AUDIENCE = OptionSpec(
    name="audience",
    field="audience",
    label="Audience",
    allowed=("general public", "executives", "students"),
    default="general public",
)

OUTLINE_OPTIONS: tuple[OptionSpec, ...] = (SLIDE_COUNT, TONE, AUDIENCE)
DIAGRAM_OPTIONS: tuple[OptionSpec, ...] = ()


def validate_request(body: Any, options: tuple[OptionSpec, ...] = ()) -> GenerationRequest:
    """Validate a decoded request body against a set of option specs.

    Args:
        body: Decoded JSON body.  Anything other than a mapping is rejected.
        options: Options recognised for this use case.

    Returns:
        A :class:`GenerationRequest` with every option resolved.

    Raises:
        InvalidRequest: On the first rule that the body breaks.
    """
    if not isinstance(body, Mapping):
        raise InvalidRequest("Request body must be a JSON object")

    requirements = body.get("requirements")
    if not isinstance(requirements, str) or len(requirements.strip()) < MIN_REQUIREMENTS_LENGTH:
        raise InvalidRequest(
            f"Requirements must be a string with at least {MIN_REQUIREMENTS_LENGTH} characters"
        )

    resolved = {spec.name: spec.resolve(body) for spec in options}
    logger.debug("Validated request with options %s", resolved)
    return GenerationRequest(requirements=requirements, options=resolved)
