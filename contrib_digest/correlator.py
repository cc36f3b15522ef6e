"""
Cross-entity correlation: fold the commit and issue summaries of one user
into a single bullet-point report.
"""

import logging

from contrib_digest.chat_chain import run_chain
from contrib_digest.config import (
    CORRELATION_SPLIT,
    CORRELATION_WORD_CAP,
    EXTRACT_MAX_TOKENS,
    REPORT_MAX_TOKENS,
    Settings,
)
from contrib_digest.llm_client import ChatEndpoint
from contrib_digest.text_budget import allocate_budget

logger = logging.getLogger(__name__)


CORRELATE_SYSTEM_PROMPT = """\
You are a technical lead reviewing the recent work of the contributor '{user}' on the \
{repo} project. You are given one-line summaries of their commits and of the issues \
they took part in. Your task is to identify the 1-3 most significant contributions. Pay \
particular attention to temporal and causal links, such as an issue the user reported or \
discussed that was later addressed by one of their commits.
"""

CORRELATE_EXTRACT_PROMPT = """\
Commit summaries:
{commits}

Issue summaries:
{issues}

From the summaries above, list the 1-3 most significant contributions made by '{user}'. \
For each one, give the date, what was done, and any issue that led to or followed from \
a commit.
"""

CORRELATE_REPORT_PROMPT = """\
Using the contributions you identified, write a short bullet-point narrative of how \
'{user}' has evolved on the project and the impact of their work, ensuring your \
response stays under 256 tokens.
"""


async def correlate(
    endpoint: ChatEndpoint,
    settings: Settings,
    repo: str,
    user: str,
    commit_text: str,
    issue_text: str,
) -> str | None:
    """
    Produce the final report from newline-joined commit and issue summaries.

    Returns None when there is nothing to correlate or the chain fails.
    """
    if not commit_text.strip() and not issue_text.strip():
        logger.info("Nothing to correlate for %s", user)
        return None

    commits, issues = allocate_budget(
        commit_text, issue_text, CORRELATION_WORD_CAP, CORRELATION_SPLIT
    )

    result = await run_chain(
        endpoint,
        CORRELATE_SYSTEM_PROMPT.format(user=user, repo=repo),
        CORRELATE_EXTRACT_PROMPT.format(commits=commits, issues=issues, user=user),
        f"correlate_{repo}_{user}",
        EXTRACT_MAX_TOKENS,
        CORRELATE_REPORT_PROMPT.format(user=user),
        REPORT_MAX_TOKENS,
        temperature=settings.llm_temperature,
    )
    if not result.ok:
        logger.warning("No report for %s (%s)", user, result.failure.value)
        return None
    return result.text
