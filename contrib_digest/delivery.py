"""
Deliver text to a Slack channel through an incoming webhook.
"""

import logging

import httpx

logger = logging.getLogger(__name__)

# Slack rejects message text beyond this length
SLACK_TEXT_LIMIT: int = 40_000


class DeliveryError(Exception):
    """Raised when the webhook call fails."""

    def __init__(self, message: str, status_code: int = 502):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def build_client(timeout: float = 30) -> httpx.AsyncClient:
    """Create the AsyncClient used for webhook posts."""
    return httpx.AsyncClient(timeout=timeout)


async def publish(
    client: httpx.AsyncClient, webhook_url: str, destination: str, text: str
) -> None:
    """Post ``text`` to the ``destination`` channel."""
    payload = {"channel": destination, "text": text[:SLACK_TEXT_LIMIT]}
    try:
        response = await client.post(webhook_url, json=payload)
    except httpx.RequestError as exc:
        raise DeliveryError(f"Network error while posting to Slack: {exc}")

    if response.status_code >= 300:
        raise DeliveryError(
            f"Slack webhook failed ({response.status_code}): {response.text}",
            status_code=response.status_code,
        )
    logger.info("Published %d chars to #%s", len(text), destination)
