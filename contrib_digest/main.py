"""
FastAPI application: Contributor Activity Digest API.

Endpoints:
  GET  /health     → health check
  POST /summarize  → summarize a user's commits and issues in a repository
  POST /trigger    → same, driven by a chat message "<trigger> owner repo user";
                     the report is also published to the Slack channel

Features:
  - Settings loaded once at startup
  - Consistent error response shape across all failure modes
  - Structured logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from contrib_digest import delivery
from contrib_digest.config import Settings, load_settings
from contrib_digest.delivery import DeliveryError, publish
from contrib_digest.github_fetcher import build_client
from contrib_digest.llm_client import ChatEndpoint, LLMError, get_client
from contrib_digest.models import (
    ErrorResponse,
    ReportResponse,
    SummarizeRequest,
    TriggerMessage,
)
from contrib_digest.pipeline import summarize_contributions
from contrib_digest.trigger import PreconditionViolation, parse_trigger


# ── Logging ───────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("contrib_digest")


# ── Lifespan ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings once for the lifetime of the app."""
    app.state.settings = load_settings()
    logger.info("Contributor Activity Digest API starting up")
    yield
    logger.info("Shutting down")


# ── App Instance ──────────────────────────────────────────────────────

app = FastAPI(
    title="Contributor Activity Digest",
    description=(
        "Summarize a contributor's commits and issue threads in a GitHub "
        "repository into a short narrative report."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


# ── Error Handlers ────────────────────────────────────────────────────


@app.exception_handler(PreconditionViolation)
async def precondition_error_handler(request: Request, exc: PreconditionViolation):
    """Reject trigger messages that do not name owner, repo and user."""
    logger.warning("Bad trigger: %s", exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message).model_dump(),
    )


@app.exception_handler(LLMError)
async def llm_error_handler(request: Request, exc: LLMError):
    """Handle LLM errors with consistent error shape."""
    logger.error("LLM error: %s (status=%d)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with consistent error shape."""
    messages = "; ".join(
        f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
        for e in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(message=f"Validation error: {messages}").model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    """Wrap FastAPI HTTPExceptions in our consistent error shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    """Catch-all for unexpected errors."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            message="An unexpected error occurred. Please try again."
        ).model_dump(),
    )


# ── Pipeline ──────────────────────────────────────────────────────────


async def _run_digest(
    settings: Settings, owner: str, repo: str, user: str, publish_report: bool
) -> ReportResponse:
    """
    Run the pipeline for one (owner, repo, user) triple.

    Steps:
      1. Build the LLM endpoint (fails fast if no API key is configured)
      2. Summarize commits, then issues, then correlate
      3. Optionally publish the report to the Slack channel; a failed
         publish is logged and the digest is still returned
    """
    endpoint = ChatEndpoint(get_client(settings), settings.llm_model)
    logger.info("Summarizing %s in %s/%s", user, owner, repo)

    async with build_client(settings) as github, delivery.build_client() as slack:
        digest = await summarize_contributions(
            settings, owner, repo, user, github=github, endpoint=endpoint, slack=slack
        )

        if publish_report and digest.report and settings.slack_webhook_url:
            try:
                await publish(
                    slack, settings.slack_webhook_url, settings.slack_channel, digest.report
                )
            except DeliveryError as exc:
                logger.error("Report delivery to #%s failed: %s", settings.slack_channel, exc.message)

    return ReportResponse(
        owner=owner,
        repo=repo,
        user=user,
        commit_summaries=digest.commit_summaries,
        issue_summaries=digest.issue_summaries,
        report=digest.report,
    )


# ── Endpoints ─────────────────────────────────────────────────────────


@app.get("/health")
async def health_check():
    """Simple health check."""
    return {"status": "ok"}


@app.post(
    "/summarize",
    response_model=ReportResponse,
    responses={
        500: {"model": ErrorResponse, "description": "Internal server error"},
        502: {"model": ErrorResponse, "description": "LLM service error"},
        504: {"model": ErrorResponse, "description": "Timeout"},
    },
)
async def summarize_user(body: SummarizeRequest, request: Request):
    """Summarize one contributor's activity in a repository."""
    return await _run_digest(
        request.app.state.settings, body.owner, body.repo, body.user, publish_report=False
    )


@app.post(
    "/trigger",
    response_model=ReportResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed trigger message"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
        502: {"model": ErrorResponse, "description": "LLM service error"},
    },
)
async def handle_trigger(body: TriggerMessage, request: Request):
    """
    Handle a chat message forwarded by the channel listener.

    The message must contain the trigger word followed by owner, repo and
    user; anything else is rejected before any GitHub request is made.
    """
    settings = request.app.state.settings
    target = parse_trigger(body.text, settings.trigger_word)
    return await _run_digest(
        settings, target.owner, target.repo, target.user, publish_report=True
    )
