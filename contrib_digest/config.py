"""
Application configuration loaded from environment variables.

Fixed budgets live here as module constants. Everything read from the
environment is collected once into an immutable ``Settings`` value by
``load_settings()`` and handed to the pipeline from there.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()

# ── Text Budgets ──────────────────────────────────────────────────────

# Every issue post and comment is quote-stripped and squeezed to this many words
COMMENT_QUOTE_MARKER: str = "```"
COMMENT_MAX_WORDS: int = 500
COMMENT_SPLIT: float = 0.6

# Stop absorbing comments once the composite issue text is this long (chars)
ISSUE_TEXT_CEILING: int = 45_000

# Stop accumulating commit summaries once the buffer is this long (chars)
COMMIT_BUFFER_CEILING: int = 45_000

# Combined word cap for commit + issue summaries fed to the correlator
CORRELATION_WORD_CAP: int = 44_000
CORRELATION_SPLIT: float = 0.6

# ── Generation Lengths ────────────────────────────────────────────────

EXTRACT_MAX_TOKENS: int = 256    # turn 1 of every chain
CONDENSE_MAX_TOKENS: int = 128   # turn 2 of commit / issue chains
REPORT_MAX_TOKENS: int = 256     # turn 2 of the correlation chain

# Turn-2 output shorter than this is treated as a failed generation
DEGENERATE_MIN_CHARS: int = 10

# ── GitHub Search ─────────────────────────────────────────────────────

MAX_ISSUE_PAGES: int = 3
ISSUES_PER_PAGE: int = 30        # GitHub search default page size
COMMENTS_PER_PAGE: int = 100

# Commit patches are served by the web host, not the API
GITHUB_WEB_BASE: str = "https://github.com"


# ── Runtime Settings ──────────────────────────────────────────────────

class Settings(BaseModel):
    """Environment-driven settings, built once at startup."""

    model_config = ConfigDict(frozen=True)

    github_token: str | None = None
    github_api_base: str = "https://api.github.com"
    github_request_timeout: float = 30

    openai_api_key: str = ""
    openai_base_url: str | None = None
    llm_model: str = "gpt-3.5-turbo-16k"
    llm_temperature: float = 0.7
    llm_timeout: float = 120

    trigger_word: str = "bot@get"
    slack_webhook_url: str | None = None
    slack_channel: str = "github-status"
    slack_diagnostics_channel: str | None = None


def load_settings() -> Settings:
    """Read the environment into a ``Settings`` value."""
    env = os.environ
    return Settings(
        github_token=env.get("GITHUB_TOKEN") or None,
        github_api_base=env.get("GITHUB_API_BASE", "https://api.github.com"),
        github_request_timeout=float(env.get("GITHUB_REQUEST_TIMEOUT", 30)),
        openai_api_key=env.get("OPENAI_API_KEY", ""),
        openai_base_url=env.get("OPENAI_BASE_URL") or None,
        llm_model=env.get("LLM_MODEL", "gpt-3.5-turbo-16k"),
        llm_temperature=float(env.get("LLM_TEMPERATURE", 0.7)),
        llm_timeout=float(env.get("LLM_TIMEOUT", 120)),
        trigger_word=env.get("TRIGGER_WORD", "bot@get"),
        slack_webhook_url=env.get("SLACK_WEBHOOK_URL") or None,
        slack_channel=env.get("SLACK_CHANNEL", "github-status"),
        slack_diagnostics_channel=env.get("SLACK_DIAGNOSTICS_CHANNEL") or None,
    )
