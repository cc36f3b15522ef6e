"""
Pipeline entry point: commits, then issues, then correlation.

Every step is awaited in turn; nothing runs concurrently. Summaries are
mirrored to the diagnostics channel when one is configured.
"""

import logging

import httpx

from contrib_digest.analyzers import analyze_commits, analyze_issues
from contrib_digest.config import Settings
from contrib_digest.correlator import correlate
from contrib_digest.delivery import DeliveryError, publish
from contrib_digest.llm_client import ChatEndpoint
from contrib_digest.models import ContributionDigest, EntitySummary

logger = logging.getLogger(__name__)


def _diagnostics_hook(settings: Settings, slack: httpx.AsyncClient | None):
    """Build the per-summary callback, or None if diagnostics are off."""
    if slack is None or not settings.slack_webhook_url or not settings.slack_diagnostics_channel:
        return None

    async def mirror(summary: EntitySummary) -> None:
        try:
            await publish(
                slack,
                settings.slack_webhook_url,
                settings.slack_diagnostics_channel,
                f"{summary.source_id}: {summary.text}",
            )
        except DeliveryError as exc:
            logger.warning("Diagnostics delivery failed for %s: %s", summary.source_id, exc.message)

    return mirror


async def summarize_contributions(
    settings: Settings,
    owner: str,
    repo: str,
    user: str,
    *,
    github: httpx.AsyncClient,
    endpoint: ChatEndpoint,
    slack: httpx.AsyncClient | None = None,
) -> ContributionDigest:
    """
    Summarize ``user``'s commits and issues in ``owner/repo`` and correlate them.

    Units that fail are skipped, so the digest may be partial; ``report`` is
    None when the correlation chain produced nothing usable.
    """
    hook = _diagnostics_hook(settings, slack)

    commit_summaries = await analyze_commits(
        github, endpoint, settings, owner, repo, user, on_summary=hook
    )
    logger.info("Commit summaries for %s: %d", user, len(commit_summaries))

    issue_summaries = await analyze_issues(
        github, endpoint, settings, owner, repo, user, on_summary=hook
    )
    logger.info("Issue summaries for %s: %d", user, len(issue_summaries))

    report = await correlate(
        endpoint,
        settings,
        repo,
        user,
        "\n".join(s.text for s in commit_summaries),
        "\n".join(s.text for s in issue_summaries),
    )

    return ContributionDigest(
        commit_summaries=commit_summaries,
        issue_summaries=issue_summaries,
        report=report,
    )
