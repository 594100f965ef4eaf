"""Deckflow - structured slide-outline and diagram generation over an LLM API."""

__version__ = "1.2.0"

from deckflow.core.config import DeckflowConfig, get_config
from deckflow.core.errors import (
    InvalidRequest,
    MalformedOutput,
    PipelineError,
    ShapeMismatch,
    UpstreamFailure,
)

__all__ = [
    "DeckflowConfig",
    "get_config",
    "PipelineError",
    "InvalidRequest",
    "UpstreamFailure",
    "MalformedOutput",
    "ShapeMismatch",
]
