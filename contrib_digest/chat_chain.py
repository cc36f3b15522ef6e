"""
Two-turn extract-then-condense conversation against the LLM endpoint.

Turn 1 extracts facts from the source text. Turn 2 condenses them, with
turn 1's full exchange handed over as a JSON-serialized system prompt so
the condensation can see the extraction even on a stateless endpoint.
"""

import logging

from contrib_digest.config import DEGENERATE_MIN_CHARS
from contrib_digest.llm_client import ChatEndpoint, ChatOptions, LLMError
from contrib_digest.models import ChainResult, ConversationContext, Failure

logger = logging.getLogger(__name__)


async def run_chain(
    endpoint: ChatEndpoint,
    system_prompt_1: str,
    user_prompt_1: str,
    conversation_id: str,
    gen_len_1: int,
    user_prompt_2: str,
    gen_len_2: int,
    temperature: float = 0.7,
) -> ChainResult:
    """
    Run both turns under ``conversation_id`` and return the turn-2 text.

    Neither turn is retried. An endpoint failure gives
    ``Failure.UPSTREAM``; a turn-2 answer shorter than
    ``DEGENERATE_MIN_CHARS`` characters gives ``Failure.DEGENERATE``.
    """
    context = ConversationContext(conversation_id=conversation_id)

    try:
        await endpoint.complete(
            context,
            user_prompt_1,
            ChatOptions(
                system_prompt=system_prompt_1,
                max_tokens=gen_len_1,
                temperature=temperature,
                restart=True,
            ),
        )
    except LLMError as exc:
        logger.error("Step 1 LLM error conversation=%s: %s", conversation_id, exc.message)
        return ChainResult(failure=Failure.UPSTREAM)

    system_prompt_2 = context.serialize()

    try:
        answer = await endpoint.complete(
            context,
            user_prompt_2,
            ChatOptions(
                system_prompt=system_prompt_2,
                max_tokens=gen_len_2,
                temperature=temperature,
                restart=False,
            ),
        )
    except LLMError as exc:
        logger.error("Step 2 LLM error conversation=%s: %s", conversation_id, exc.message)
        return ChainResult(failure=Failure.UPSTREAM)

    if len(answer) < DEGENERATE_MIN_CHARS:
        logger.info(
            "Degenerate output conversation=%s (%d chars)", conversation_id, len(answer)
        )
        return ChainResult(failure=Failure.DEGENERATE)

    return ChainResult(text=answer)
