"""Single-shot calls to the OpenAI-compatible completion endpoint.

This module provides :class:`ModelInvoker`, the only component that talks to
the network.  It is handed an already-constructed ``openai.AsyncOpenAI``
client instead of owning one, so the client can be created once per process
(or replaced by a mock in tests) without any module-level state.

Key Responsibilities
--------------------
- **One attempt** — :meth:`ModelInvoker.invoke` sends exactly one request.
  Retries are disabled on the client built by :func:`build_client` and never
  performed here; a caller may re-run the whole pipeline if it wants to.
- **Bounded wait** — every request carries ``timeout`` seconds.
- **Opaque failures** — transport, authentication, status and timeout errors
  become :class:`UpstreamFailure` with a generic message.  The specific
  upstream diagnostic is logged locally and never returned.

Usage
-----
::

    client = build_client(config)
    invoker = ModelInvoker(client, timeout=config.request_timeout)

    raw = await invoker.invoke(payload, "openrouter/quasar-alpha")
    raw.text
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import openai
from openai import AsyncOpenAI

from deckflow.core.config import DeckflowConfig
from deckflow.core.errors import UpstreamFailure
from deckflow.core.models import PromptPayload, RawModelOutput

logger = logging.getLogger(__name__)

UPSTREAM_FAILURE_MESSAGE = "Failed to reach the language model"


def build_client(config: DeckflowConfig) -> AsyncOpenAI:
    """Create the async client used for every completion call.

    Args:
        config: Application configuration supplying the key and base URL.

    Returns:
        An ``AsyncOpenAI`` client with automatic retries disabled.
    """
    return AsyncOpenAI(
        api_key=config.api_key.get_secret_value(),
        base_url=config.base_url,
        timeout=config.request_timeout,
        max_retries=0,
    )


class ModelInvoker:
    """Performs one chat-completion call per :meth:`invoke`.

    Attributes:
        _client (AsyncOpenAI):
            Injected client.  The invoker never mutates it.
        _timeout (float):
            Per-request timeout in seconds.
        _extra_headers (dict[str, str]):
            Headers sent with every request (e.g. OpenRouter attribution).
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        timeout: float,
        extra_headers: Mapping[str, str] | None = None,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._extra_headers = dict(extra_headers or {})

    async def invoke(
        self,
        payload: PromptPayload,
        model: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> RawModelOutput:
        """Send *payload* to *model* and return the answer text.

        Args:
            payload: System and user instructions.
            model: Model identifier understood by the endpoint.
            headers: Per-call headers merged over the invoker defaults.

        Returns:
            The raw answer text and the model identifier reported by the
            endpoint (falling back to *model*).

        Raises:
            UpstreamFailure: On timeout, connection failure, an error status
                from the endpoint, or a response without choices
                or without a message.
        """
        extra_headers = {**self._extra_headers, **(headers or {})}
        logger.info("Requesting completion from '%s'.", model)

        try:
            completion = await self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": payload.system_instruction},
                    {"role": "user", "content": payload.user_instruction},
                ],
                timeout=self._timeout,
                extra_headers=extra_headers or None,
            )
        except openai.APITimeoutError as e:
            logger.error("Completion from '%s' timed out after %ss: %s", model, self._timeout, e)
            raise UpstreamFailure(UPSTREAM_FAILURE_MESSAGE) from e
        except openai.APIConnectionError as e:
            logger.error("Could not connect to completion endpoint for '%s': %s", model, e)
            raise UpstreamFailure(UPSTREAM_FAILURE_MESSAGE) from e
        except openai.APIStatusError as e:
            logger.error(
                "Completion endpoint rejected call to '%s' with status %s: %s",
                model,
                e.status_code,
                e.message,
            )
            raise UpstreamFailure(UPSTREAM_FAILURE_MESSAGE) from e
        except openai.OpenAIError as e:
            logger.error("Completion call to '%s' failed: %s", model, e)
            raise UpstreamFailure(UPSTREAM_FAILURE_MESSAGE) from e

        choices = getattr(completion, "choices", None)
        if not choices:
            logger.error("Completion from '%s' contained no choices.", model)
            raise UpstreamFailure(UPSTREAM_FAILURE_MESSAGE)

        message = getattr(choices[0], "message", None)
        if message is None:
            logger.error("Completion from '%s' returned a choice without a message.", model)
            raise UpstreamFailure(UPSTREAM_FAILURE_MESSAGE)

        text = message.content or ""
        model_identifier = getattr(completion, "model", None) or model
        logger.info("Received %d characters from '%s'.", len(text), model_identifier)
        return RawModelOutput(text=text, model_identifier=model_identifier)
