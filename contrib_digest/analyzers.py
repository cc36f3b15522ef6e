"""
Per-entity analysis: turn one commit patch or one issue thread into a
one-paragraph summary of what the user did there.

Units are fetched and analyzed one at a time, in order. A unit whose fetch
or chain fails is logged and skipped; the rest of the run carries on.
"""

import logging
from collections.abc import Awaitable, Callable

import httpx

from contrib_digest import github_fetcher
from contrib_digest.chat_chain import run_chain
from contrib_digest.config import (
    COMMENT_MAX_WORDS,
    COMMENT_QUOTE_MARKER,
    COMMENT_SPLIT,
    COMMIT_BUFFER_CEILING,
    CONDENSE_MAX_TOKENS,
    EXTRACT_MAX_TOKENS,
    ISSUE_TEXT_CEILING,
    Settings,
)
from contrib_digest.github_fetcher import GitHubFetchError
from contrib_digest.llm_client import ChatEndpoint
from contrib_digest.models import CommitPatch, EntitySummary, IssueThread, Post
from contrib_digest.text_budget import strip_quoted_and_budget

logger = logging.getLogger(__name__)

SummaryHook = Callable[[EntitySummary], Awaitable[None]]


# ── Commit Prompts ────────────────────────────────────────────────────

COMMIT_SYSTEM_PROMPT = """\
You are provided with a commit patch by the user {user} on the {repo} project. \
Your task is to parse this data, focusing on the following sections: the Date Line, \
Subject Line, Diff Files, Diff Changes, Sign-off Line, and the File Changes Summary. \
Extract key elements such as the date of the commit (in 'yyyy/mm/dd' format), a summary \
of changes, and the types of files affected, prioritizing code files, scripts, then \
documentation. Be particularly careful to distinguish between changes made to core code \
files and modifications made to documentation files, even if they contain technical \
content. Compile a list of the extracted key elements.
"""

COMMIT_EXTRACT_PROMPT = """\
Based on the provided commit patch: {patch}, extract and present the following key \
elements: the date of the commit (formatted as 'yyyy/mm/dd'), a high-level summary of \
the changes made, and the types of files affected. Prioritize data on changes to code \
files first, then scripts, and lastly documentation. Pay attention to the file types and \
ensure the distinction between documentation changes and core code changes, even when \
the documentation contains highly technical language. Please compile your findings into \
a list, with each key element represented as a separate item.
"""

COMMIT_CONDENSE_PROMPT = """\
Using the key elements you extracted from the commit patch, provide a summary of the \
user's contributions to the project. Include the date of the commit, the types of files \
affected, and the overall changes made. When describing the affected files, make sure to \
differentiate between changes to core code files, scripts, and documentation files. \
Present your summary in this format: 'On (date in 'yyyy/mm/dd' format), the user \
(summary of changes). They (overall impact of changes).'
"""


# ── Issue Prompts ─────────────────────────────────────────────────────

ISSUE_SYSTEM_PROMPT = """\
Given the information that user '{opener}' opened an issue titled '{title}', labelled \
as '{labels}', your task is to analyze the content of the issue posts. Extract key \
details including the main problem or question raised, the environment in which the \
issue occurred, any steps taken by the user to address the problem, relevant \
discussions, and any identified solutions or pending tasks.
"""

ISSUE_EXTRACT_PROMPT = """\
Based on the GitHub issue posts: {posts}, please list the following key details: The \
main problem or question raised in the issue. The environment or conditions in which \
the issue occurred (e.g., hardware, OS). Any steps or actions taken by the user '{user}' \
or others to address the issue. Key discussions or points of view shared by participants \
in the issue thread. Any solutions identified, or pending tasks if the issue hasn't been \
resolved. The role and contribution of the user '{user}' in the issue.
"""

ISSUE_CONDENSE_PROMPT = """\
Provide a brief summary highlighting the core problem and emphasize the overarching \
contribution made by '{user}' to the resolution of this issue, ensuring your response \
stays under 128 tokens.
"""


def _squeeze(body: str) -> str:
    return strip_quoted_and_budget(
        body, COMMENT_QUOTE_MARKER, COMMENT_MAX_WORDS, COMMENT_SPLIT
    )


def build_issue_text(issue: IssueThread, comments: list[Post]) -> str:
    """
    Compose the opener post and the comments into one prompt-ready text.

    Every body is quote-stripped and squeezed. Comments stop being absorbed
    once the text grows past ``ISSUE_TEXT_CEILING`` characters.
    """
    opener = issue.opener
    labels = ", ".join(issue.labels)
    text = (
        f"User '{opener.author}', has submitted an issue titled '{issue.title}', "
        f"labeled as '{labels}', with the following post: '{_squeeze(opener.body)}'."
    )

    for comment in comments:
        text += f"{comment.author} commented: {_squeeze(comment.body)}"
        if len(text) > ISSUE_TEXT_CEILING:
            break

    return text


# ── Commits ───────────────────────────────────────────────────────────


async def analyze_commit(
    endpoint: ChatEndpoint,
    settings: Settings,
    repo: str,
    user: str,
    patch: CommitPatch,
) -> EntitySummary | None:
    """Summarize one commit patch, or return None if the chain gave nothing usable."""
    result = await run_chain(
        endpoint,
        COMMIT_SYSTEM_PROMPT.format(user=user, repo=repo),
        COMMIT_EXTRACT_PROMPT.format(patch=patch.body),
        f"commit_{patch.sha}",
        EXTRACT_MAX_TOKENS,
        COMMIT_CONDENSE_PROMPT,
        CONDENSE_MAX_TOKENS,
        temperature=settings.llm_temperature,
    )
    if not result.ok:
        logger.warning("No summary for commit %s (%s)", patch.sha, result.failure.value)
        return None
    return EntitySummary(source_id=patch.sha, text=result.text)


async def analyze_commits(
    github: httpx.AsyncClient,
    endpoint: ChatEndpoint,
    settings: Settings,
    owner: str,
    repo: str,
    user: str,
    on_summary: SummaryHook | None = None,
) -> list[EntitySummary]:
    """
    Summarize the user's commits one by one.

    Stops taking on commits once the newline-joined summaries exceed
    ``COMMIT_BUFFER_CEILING`` characters.
    """
    try:
        commits = await github_fetcher.fetch_commits(github, owner, repo, user)
    except GitHubFetchError as exc:
        logger.error("Could not list commits of %s in %s/%s: %s", user, owner, repo, exc.message)
        return []

    logger.info("Analyzing %d commits of %s in %s/%s", len(commits), user, owner, repo)

    summaries: list[EntitySummary] = []
    buffer_len = 0

    for commit in commits:
        try:
            patch = await github_fetcher.fetch_patch(github, owner, repo, commit.sha)
        except GitHubFetchError as exc:
            logger.warning("Skipping commit %s at fetch: %s", commit.sha, exc.message)
            continue

        summary = await analyze_commit(endpoint, settings, repo, user, patch)
        if summary is None:
            continue

        summaries.append(summary)
        if on_summary is not None:
            await on_summary(summary)

        buffer_len += len(summary.text) + (1 if buffer_len else 0)
        if buffer_len > COMMIT_BUFFER_CEILING:
            logger.info("Commit summary buffer full at %d chars", buffer_len)
            break

    return summaries


# ── Issues ────────────────────────────────────────────────────────────


async def analyze_issue(
    github: httpx.AsyncClient,
    endpoint: ChatEndpoint,
    settings: Settings,
    owner: str,
    repo: str,
    user: str,
    issue: IssueThread,
) -> EntitySummary | None:
    """
    Summarize one issue thread with the user's part in it.

    If the comments cannot be fetched the opener post is analyzed alone.
    The summary is prefixed with the issue URL and its opening date.
    """
    try:
        comments = await github_fetcher.fetch_comments(github, owner, repo, issue.number)
    except GitHubFetchError as exc:
        logger.warning("No comments for issue #%d: %s", issue.number, exc.message)
        comments = []

    opener = issue.opener
    labels = ", ".join(issue.labels)

    result = await run_chain(
        endpoint,
        ISSUE_SYSTEM_PROMPT.format(opener=opener.author, title=issue.title, labels=labels),
        ISSUE_EXTRACT_PROMPT.format(posts=build_issue_text(issue, comments), user=user),
        f"issue_{issue.number}",
        EXTRACT_MAX_TOKENS,
        ISSUE_CONDENSE_PROMPT.format(user=user),
        CONDENSE_MAX_TOKENS,
        temperature=settings.llm_temperature,
    )
    if not result.ok:
        logger.info("No summary for issue #%d (%s)", issue.number, result.failure.value)
        return None

    return EntitySummary(
        source_id=f"#{issue.number}",
        text=f"{issue.html_url} ({issue.created_date}) {result.text}",
    )


async def analyze_issues(
    github: httpx.AsyncClient,
    endpoint: ChatEndpoint,
    settings: Settings,
    owner: str,
    repo: str,
    user: str,
    on_summary: SummaryHook | None = None,
) -> list[EntitySummary]:
    """Summarize every issue involving the user, newest first."""
    issues = await github_fetcher.search_issues(github, owner, repo, user)

    summaries: list[EntitySummary] = []
    for issue in issues:
        summary = await analyze_issue(github, endpoint, settings, owner, repo, user, issue)
        if summary is None:
            continue
        summaries.append(summary)
        if on_summary is not None:
            await on_summary(summary)

    return summaries
