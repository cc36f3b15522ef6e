"""
GitHub API interaction: search a user's issues, fetch issue comments,
list a user's commits and download commit patches.

Uses the GitHub REST API (v3) with optional token authentication.
All functions are async and take an ``httpx.AsyncClient`` built by
``build_client``. Every failure is raised as ``GitHubFetchError`` so callers
can skip the unit it belongs to.
"""

import logging
from typing import Literal

import httpx

from contrib_digest.config import (
    COMMENTS_PER_PAGE,
    GITHUB_WEB_BASE,
    ISSUES_PER_PAGE,
    MAX_ISSUE_PAGES,
    Settings,
)
from contrib_digest.models import CommitPatch, CommitRef, IssueThread, Post

logger = logging.getLogger(__name__)


class GitHubFetchError(Exception):
    """Raised when a GitHub request fails or returns an unexpected body."""

    def __init__(
        self,
        message: str,
        kind: Literal["transport", "parse"] = "transport",
        status_code: int = 502,
    ):
        self.message = message
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)


# ── HTTP Client Helpers ───────────────────────────────────────────────


def _build_headers(token: str | None) -> dict[str, str]:
    """Build request headers, including auth token if available."""
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": "contrib-digest/1.0",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def build_client(settings: Settings) -> httpx.AsyncClient:
    """Create an AsyncClient rooted at the GitHub API."""
    return httpx.AsyncClient(
        base_url=settings.github_api_base,
        headers=_build_headers(settings.github_token),
        timeout=settings.github_request_timeout,
        follow_redirects=True,
    )


async def _github_get(
    client: httpx.AsyncClient, endpoint: str, params: dict | None = None
) -> httpx.Response:
    """
    Perform a GET request and check the status.

    Raises GitHubFetchError(kind="transport") on network errors and
    non-200 responses.
    """
    try:
        response = await client.get(endpoint, params=params)
    except httpx.TimeoutException:
        raise GitHubFetchError(f"GitHub request timed out: {endpoint}", status_code=504)
    except httpx.RequestError as exc:
        raise GitHubFetchError(f"Network error while contacting GitHub: {exc}")

    if response.status_code == 404:
        raise GitHubFetchError(f"Not found: {endpoint}", status_code=404)
    if response.status_code == 403:
        raise GitHubFetchError(
            "GitHub API rate limit exceeded. "
            "Set the GITHUB_TOKEN environment variable for higher limits.",
            status_code=429,
        )
    if response.status_code != 200:
        raise GitHubFetchError(
            f"GitHub returned status {response.status_code} for {endpoint}.",
            status_code=response.status_code,
        )
    return response


async def _github_get_json(
    client: httpx.AsyncClient, endpoint: str, params: dict | None = None
):
    response = await _github_get(client, endpoint, params)
    try:
        return response.json()
    except ValueError:
        raise GitHubFetchError(
            f"GitHub response for {endpoint} is not valid JSON.", kind="parse"
        )


def _login(obj) -> str:
    if not isinstance(obj, dict):
        return "unknown"
    return obj.get("login") or "unknown"


# ── Issues ────────────────────────────────────────────────────────────


def _parse_issue(item: dict) -> IssueThread:
    """Turn one search result item into an IssueThread holding only the opener post."""
    try:
        return IssueThread(
            number=item["number"],
            title=item.get("title") or "",
            html_url=item["html_url"],
            created_at=item.get("created_at") or "",
            labels=tuple(lab["name"] for lab in item.get("labels") or []),
            posts=(Post(author=_login(item.get("user")), body=item.get("body") or ""),),
        )
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise GitHubFetchError(f"Malformed issue in search results: {exc}", kind="parse")


async def search_issues(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    user: str,
    max_pages: int = MAX_ISSUE_PAGES,
) -> list[IssueThread]:
    """
    Search issues and pull requests in ``owner/repo`` that involve ``user``.

    Newest first. Reads at most ``max_pages`` pages; the first successful
    page's ``total_count`` lowers that limit. A page that fails to fetch or
    parse is logged and skipped, as is any single malformed item.
    """
    query = f"repo:{owner}/{repo} involves:{user}"
    issues: list[IssueThread] = []
    total_pages: int | None = None

    for page in range(1, max_pages + 1):
        if page > (total_pages or max_pages):
            break

        try:
            data = await _github_get_json(
                client,
                "/search/issues",
                params={"q": query, "sort": "created", "order": "desc", "page": page},
            )
            if not isinstance(data, dict) or not isinstance(data.get("items"), list):
                raise GitHubFetchError("Search response has no 'items' list.", kind="parse")
        except GitHubFetchError as exc:
            logger.warning("Skipping issue search page %d: %s", page, exc.message)
            continue

        page_issues: list[IssueThread] = []
        for item in data["items"]:
            try:
                page_issues.append(_parse_issue(item))
            except GitHubFetchError as exc:
                logger.warning("Skipping search item on page %d: %s", page, exc.message)

        if total_pages is None and isinstance(data.get("total_count"), int):
            total_pages = data["total_count"] // ISSUES_PER_PAGE + 1

        issues.extend(page_issues)

    logger.info("Found %d issues involving %s in %s/%s", len(issues), user, owner, repo)
    return issues


async def fetch_comments(
    client: httpx.AsyncClient, owner: str, repo: str, number: int
) -> list[Post]:
    """Fetch the comments of one issue, oldest first."""
    data = await _github_get_json(
        client,
        f"/repos/{owner}/{repo}/issues/{number}/comments",
        params={"per_page": COMMENTS_PER_PAGE},
    )
    if not isinstance(data, list):
        raise GitHubFetchError(f"Comments for issue #{number} are not a list.", kind="parse")

    try:
        return [
            Post(author=_login(comment.get("user")), body=comment.get("body") or "")
            for comment in data
        ]
    except (AttributeError, ValueError) as exc:
        raise GitHubFetchError(f"Malformed comment on issue #{number}: {exc}", kind="parse")


# ── Commits ───────────────────────────────────────────────────────────


async def fetch_commits(
    client: httpx.AsyncClient, owner: str, repo: str, user: str
) -> list[CommitRef]:
    """List the commits authored by ``user`` on the default branch."""
    data = await _github_get_json(
        client, f"/repos/{owner}/{repo}/commits", params={"author": user}
    )
    if not isinstance(data, list):
        raise GitHubFetchError("Commit listing is not a list.", kind="parse")

    try:
        return [
            CommitRef(sha=commit["sha"], html_url=commit.get("html_url") or "")
            for commit in data
        ]
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise GitHubFetchError(f"Malformed commit in listing: {exc}", kind="parse")


def patch_url(owner: str, repo: str, sha: str) -> str:
    return f"{GITHUB_WEB_BASE}/{owner}/{repo}/commit/{sha}.patch"


async def fetch_patch(
    client: httpx.AsyncClient, owner: str, repo: str, sha: str
) -> CommitPatch:
    """Download a commit's ``.patch`` text from the GitHub web host."""
    response = await _github_get(client, patch_url(owner, repo, sha))
    if not response.content:
        raise GitHubFetchError(f"Empty patch for commit {sha}.", kind="parse")
    return CommitPatch(sha=sha, body=response.text)
