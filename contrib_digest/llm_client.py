"""
LLM client for any OpenAI-compatible chat completions endpoint.

The endpoint is stateless on the wire: each request carries one system
prompt and one user prompt. The caller's ConversationContext is the record
of the conversation; ``restart=True`` clears it before the turn.
"""

import logging

from openai import AsyncOpenAI, APIError, APITimeoutError, APIConnectionError
from pydantic import BaseModel, ConfigDict

from contrib_digest.config import Settings
from contrib_digest.models import ConversationContext

logger = logging.getLogger(__name__)


# ── LLM Error ─────────────────────────────────────────────────────────

class LLMError(Exception):
    """Raised when the LLM call fails or returns nothing usable."""

    def __init__(self, message: str, status_code: int = 502):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ChatOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_prompt: str
    max_tokens: int
    temperature: float = 0.7
    restart: bool = False


# ── Client ────────────────────────────────────────────────────────────

def get_client(settings: Settings) -> AsyncOpenAI:
    """Create an AsyncOpenAI client from the runtime settings."""
    if not settings.openai_api_key:
        raise LLMError(
            "OPENAI_API_KEY environment variable is not set.",
            status_code=500,
        )
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.llm_timeout,
    )


def _extract_text(response) -> str:
    """
    Pull the answer text out of a chat completion.

    Reasoning models may leave ``content`` empty and put the answer in
    ``reasoning_content`` or ``reasoning`` instead.
    """
    choice = response.choices[0] if response.choices else None
    if not choice or not choice.message:
        raise LLMError("LLM returned an empty response.")

    msg = choice.message
    if msg.content and msg.content.strip():
        return msg.content.strip()
    if getattr(msg, "reasoning_content", None):
        logger.warning("LLM content was empty, using reasoning_content")
        return msg.reasoning_content.strip()
    if getattr(msg, "reasoning", None):
        logger.warning("LLM content was empty, using reasoning field")
        return msg.reasoning.strip()

    # An empty answer is not an endpoint failure; the chain decides what it is worth
    return ""


class ChatEndpoint:
    """One model on one OpenAI-compatible endpoint."""

    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def complete(
        self, context: ConversationContext, prompt: str, options: ChatOptions
    ) -> str:
        """
        Run one chat turn and record it in ``context``.

        Raises:
            LLMError: If the endpoint is unreachable or returns an error.
        """
        if options.restart:
            context.restart()

        logger.info(
            "Calling LLM model=%s conversation=%s prompt_chars=%d max_tokens=%d",
            self.model,
            context.conversation_id,
            len(prompt),
            options.max_tokens,
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": options.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=options.temperature,
                max_tokens=options.max_tokens,
            )
        except APITimeoutError:
            raise LLMError("LLM request timed out.", status_code=504)
        except APIConnectionError:
            raise LLMError("Could not connect to the LLM endpoint.", status_code=502)
        except APIError as exc:
            logger.error("LLM API error: %s", exc)
            raise LLMError(
                f"LLM API error: {exc.message}",
                status_code=getattr(exc, "status_code", None) or 502,
            )

        text = _extract_text(response)

        context.append("system", options.system_prompt)
        context.append("user", prompt)
        context.append("assistant", text)

        logger.info(
            "LLM response received conversation=%s length=%d chars",
            context.conversation_id,
            len(text),
        )
        return text
