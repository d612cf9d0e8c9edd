"""
Slack notification for new pull requests.

The webhook URL comes from SLACK_WEBHOOK_URL so it never lives in the
source tree.
"""
import logging
import os
from typing import Any, Dict, Mapping, Optional

import requests

from ..core.exceptions import NotificationError

logger = logging.getLogger(__name__)

WEBHOOK_ENV_KEY = "SLACK_WEBHOOK_URL"


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def build_pr_message(title: str, url: str, author: str) -> Dict[str, Any]:
    """Slack Block Kit message announcing a pull request"""
    return {
        "blocks": [
            _section("@here :rocket: *A new pull request has been created*"),
            {"type": "divider"},
            _section(f"*Title:* {title}"),
            _section(f"*URL:* <{url}>"),
            _section(f"*Author:* {author}"),
            {"type": "divider"},
            _section("*Please help to review the changes* :thankyou2:"),
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": "View Pull Request", "emoji": True},
                        "url": url,
                        "style": "primary",
                    }
                ],
            },
        ]
    }


def notify_slack_on_pr(payload: Mapping[str, Any], webhook_url: Optional[str] = None,
                       timeout: float = 10) -> Dict[str, Any]:
    """
    Post a pull-request announcement to Slack.

    Args:
        payload: GitHub ``pull_request`` event payload
        webhook_url: Incoming webhook URL, defaults to SLACK_WEBHOOK_URL
        timeout: Request timeout in seconds

    Returns:
        The message that was sent

    Raises:
        NotificationError: invalid payload, missing webhook URL or failed delivery.
            The message is sent once; there is no retry.
    """
    try:
        pull_request = payload.get("pull_request") if isinstance(payload, Mapping) else None
        if not pull_request or not payload.get("repository"):
            raise NotificationError("Invalid payload: missing pull_request or repository")

        url = webhook_url or os.environ.get(WEBHOOK_ENV_KEY)
        if not url:
            raise NotificationError(f"{WEBHOOK_ENV_KEY} environment variable is not set")

        message = build_pr_message(
            title=pull_request.get("title") or "No Title",
            url=pull_request.get("html_url", ""),
            author=(pull_request.get("user") or {}).get("login") or "Unknown",
        )

        try:
            response = requests.post(url, json=message, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationError(f"Slack webhook request failed: {e}") from e

        logger.info("Slack notification sent successfully")
        return message
    except NotificationError as e:
        logger.error(f"Failed to send Slack notification: {e}")
        raise
