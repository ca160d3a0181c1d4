"""POST completed analyses to a user-configured webhook."""

from __future__ import annotations

import logging
from typing import Any

from drive_analyzer.results import Err, Ok, Result

logger = logging.getLogger(__name__)


def send_to_webhook(
    webhook_url: str,
    data: Any,
    timeout: float = 30.0,
    transport=None,
) -> Result[None]:
    """Send ``data`` as JSON. Never retried; failures come back as ``Err``."""
    if not webhook_url or not webhook_url.strip():
        return Err("Webhook URL is not provided or is empty.")
    try:
        import httpx
    except ImportError:
        raise ImportError(
            "httpx is required for webhooks. "
            "Install with: pip install drive-analyzer[web]"
        )

    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.post(webhook_url.strip(), json=data)
    except httpx.HTTPError as e:
        logger.error(f"Webhook delivery to {webhook_url} failed: {e}")
        return Err(f"Failed to send webhook: {e}", source=webhook_url, details=e)

    if not response.is_success:
        message = (
            f"Webhook request failed with status {response.status_code}: "
            f"{response.reason_phrase}. Body: {response.text}"
        )
        logger.error(message)
        return Err(message, source=webhook_url, details=response.status_code)

    logger.info(f"Webhook delivered to {webhook_url}")
    return Ok(None)
