"""
Pydantic models for the pipeline's data and the API's request / response schemas.

Raw units (commit patches, issue threads) are frozen once fetched.
A ConversationContext is the only mutable model: it records one chain's
messages in order and never outlives that chain.
"""

import json
import math
import re
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Raw Units ─────────────────────────────────────────────────────────

class CommitRef(BaseModel):
    """One entry of the commit listing for a user."""

    model_config = ConfigDict(frozen=True)

    sha: str
    html_url: str = ""


class CommitPatch(BaseModel):
    """A commit's unified-diff patch text."""

    model_config = ConfigDict(frozen=True)

    sha: str
    body: str


class Post(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: str
    body: str = ""


class IssueThread(BaseModel):
    """An issue and its posts; the issue body is the first post."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    html_url: str
    created_at: str = ""
    labels: tuple[str, ...] = ()
    posts: tuple[Post, ...] = ()

    @property
    def opener(self) -> Post:
        return self.posts[0] if self.posts else Post(author="unknown")

    @property
    def created_date(self) -> str:
        """``yyyy-mm-dd`` part of the creation timestamp."""
        return self.created_at[:10]


# ── Budget ────────────────────────────────────────────────────────────

class Budget(BaseModel):
    """
    How many words to keep, and how many of them come from the start.

    The remaining ``tail_count`` words come from the end; the middle is dropped.
    """

    model_config = ConfigDict(frozen=True)

    max_units: int = Field(..., ge=1)
    head_fraction: float = Field(..., ge=0.0, le=1.0)

    @property
    def head_count(self) -> int:
        return math.floor(self.max_units * self.head_fraction)

    @property
    def tail_count(self) -> int:
        return self.max_units - self.head_count


# ── Conversation ──────────────────────────────────────────────────────

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ConversationContext(BaseModel):
    """Ordered, append-only message history of one conversation id."""

    conversation_id: str
    messages: list[ChatMessage] = Field(default_factory=list)

    def append(self, role: Role, content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))

    def restart(self) -> None:
        self.messages.clear()

    def serialize(self) -> str:
        """JSON array of ``{"role", "content"}`` objects, oldest first."""
        return json.dumps([m.model_dump() for m in self.messages])


# ── Chain Outcome ─────────────────────────────────────────────────────

class Failure(str, Enum):
    UPSTREAM = "upstream"        # endpoint unreachable or returned an error
    DEGENERATE = "degenerate"    # output too short to be a summary


class ChainResult(BaseModel):
    """Either the turn-2 text or the reason there is none."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.text is not None


# ── Summaries ─────────────────────────────────────────────────────────

class EntitySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_id: str
    text: str


class ContributionDigest(BaseModel):
    """Everything one pipeline run produced."""

    commit_summaries: list[EntitySummary] = Field(default_factory=list)
    issue_summaries: list[EntitySummary] = Field(default_factory=list)
    report: str | None = None


# ── Request ───────────────────────────────────────────────────────────

_NAME_PATTERN = re.compile(r"^[\w.\-]+$")


class SummarizeRequest(BaseModel):
    """POST /summarize request body."""

    owner: str = Field(..., description="Repository owner / organisation", examples=["WasmEdge"])
    repo: str = Field(..., description="Repository name", examples=["WasmEdge"])
    user: str = Field(..., description="GitHub login of the contributor", examples=["octocat"])

    @field_validator("owner", "repo", "user")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """GitHub owner, repo and login names are word characters, dots and dashes."""
        v = v.strip()
        if not _NAME_PATTERN.match(v):
            raise ValueError(f"Invalid GitHub name: {v!r}")
        return v


class TriggerMessage(BaseModel):
    """POST /trigger request body: a chat message forwarded by the listener."""

    text: str = Field(..., description="Raw chat message text")


# ── Response ──────────────────────────────────────────────────────────

class ReportResponse(BaseModel):
    """Success response for both /summarize and /trigger."""

    owner: str
    repo: str
    user: str
    commit_summaries: list[EntitySummary] = Field(
        default_factory=list,
        description="One summary per successfully analyzed commit",
    )
    issue_summaries: list[EntitySummary] = Field(
        default_factory=list,
        description="One summary per successfully analyzed issue",
    )
    report: str | None = Field(
        None,
        description="Correlated narrative, null when the correlation chain failed",
    )


# ── Error ─────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Uniform error response; clients can always check status == "error"."""

    status: str = Field(default="error", description="Always 'error' for error responses")
    message: str = Field(..., description="Human-readable error description")
