"""
Shared fixtures: a scripted stand-in for the LLM endpoint and a fake GitHub
served through ``httpx.MockTransport``.
"""

import httpx
import pytest

from contrib_digest.config import Settings
from contrib_digest.llm_client import ChatOptions, LLMError
from contrib_digest.models import ConversationContext


class FakeEndpoint:
    """
    Answers chat turns from a script and records every call.

    ``answers`` maps a conversation id prefix to the list of answers for
    turn 1 and turn 2; an ``LLMError`` instance in place of an answer is raised.
    """

    def __init__(self, answers: dict[str, list], default: list | None = None):
        self.answers = answers
        self.default = default or ["extracted facts", "A valid multi-word summary."]
        self.calls: list[tuple[str, str, ChatOptions]] = []
        self.turns: dict[str, int] = {}

    def _script(self, conversation_id: str) -> list:
        for prefix, script in self.answers.items():
            if conversation_id.startswith(prefix):
                return script
        return self.default

    async def complete(
        self, context: ConversationContext, prompt: str, options: ChatOptions
    ) -> str:
        if options.restart:
            context.restart()
            self.turns[context.conversation_id] = 0

        self.calls.append((context.conversation_id, prompt, options))
        turn = self.turns.get(context.conversation_id, 0)
        self.turns[context.conversation_id] = turn + 1

        answer = self._script(context.conversation_id)[turn]
        if isinstance(answer, LLMError):
            raise answer

        context.append("system", options.system_prompt)
        context.append("user", prompt)
        context.append("assistant", answer)
        return answer


PATCH_TEXT = """\
From 1111111 Mon Sep 17 00:00:00 2001
From: Octo Cat <octo@example.com>
Date: Tue, 3 Oct 2023 10:00:00 +0000
Subject: [PATCH] Fix crash when loading empty modules

---
 lib/loader.cpp | 4 ++++
 1 file changed, 4 insertions(+)
"""


def github_handler(
    commits: list[dict] | None = None,
    issues: list[dict] | None = None,
    comments: dict[int, list[dict]] | None = None,
    patches: dict[str, str] | None = None,
    fail_paths: set[str] | None = None,
):
    """Build a MockTransport handler that serves a tiny fake GitHub."""
    commits = commits if commits is not None else []
    issues = issues if issues is not None else []
    comments = comments or {}
    patches = patches or {}
    fail_paths = fail_paths or set()

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path in fail_paths:
            return httpx.Response(500, json={"message": "boom"})

        if request.url.host == "github.com" and path.endswith(".patch"):
            sha = path.rsplit("/", 1)[-1][: -len(".patch")]
            if sha not in patches:
                return httpx.Response(404)
            return httpx.Response(200, text=patches[sha])

        if path.endswith("/commits"):
            return httpx.Response(200, json=commits)

        if path == "/search/issues":
            return httpx.Response(200, json={"total_count": len(issues), "items": issues})

        if path.endswith("/comments"):
            number = int(path.split("/")[-2])
            return httpx.Response(200, json=comments.get(number, []))

        return httpx.Response(404, json={"message": "Not Found"})

    return handler


def make_issue(number: int, title: str = "Crash on start", body: str = "It crashes.") -> dict:
    return {
        "number": number,
        "title": title,
        "html_url": f"https://github.com/owner/repo/issues/{number}",
        "created_at": "2023-09-30T08:00:00Z",
        "labels": [{"name": "bug"}],
        "user": {"login": "reporter"},
        "body": body,
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="test-key")


def github_client(handler) -> httpx.AsyncClient:
    """A GitHub API client whose requests are answered by ``handler``."""
    return httpx.AsyncClient(
        base_url="https://api.github.com",
        transport=httpx.MockTransport(handler),
    )
