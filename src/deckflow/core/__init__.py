"""Core functionality for structured generation.

This package provides the request pipeline and its stages:

- **request_validator**: Validation of request bodies and option tables
- **prompt_builder**: System prompt templates for outlines and diagrams
- **model_invoker**: Single-shot calls to the completion endpoint
- **normalizer**: Removal of code-fence wrappers from model output
- **result_validator**: Shape validation of slide decks and diagrams
- **pipeline**: Use cases and the stage-by-stage runner
- **config**: Configuration management using Pydantic Settings

Usage Example
-------------
    from deckflow.core import ModelInvoker, build_client, get_config
    from deckflow.core import outline_use_case, run_pipeline

    config = get_config()
    invoker = ModelInvoker(build_client(config), timeout=config.request_timeout)
    deck = await run_pipeline(
        {"requirements": "Create a presentation about solar energy benefits"},
        outline_use_case(config.outline_model),
        invoker,
    )
"""

from deckflow.core.config import DeckflowConfig, get_config
from deckflow.core.model_invoker import ModelInvoker, build_client
from deckflow.core.pipeline import UseCase, diagram_use_case, outline_use_case, run_pipeline

__all__ = [
    "DeckflowConfig",
    "get_config",
    "ModelInvoker",
    "build_client",
    "UseCase",
    "outline_use_case",
    "diagram_use_case",
    "run_pipeline",
]
