"""Slack webhook notifications for new flagging runs."""
import logging
import time
from datetime import date

import requests

from .models import FlaggedGroup

logger = logging.getLogger(__name__)


def _format_date(target_date: date) -> str:
    return f"{target_date:%b} {target_date.day}, {target_date.year}"


def build_slack_message(groups: list[FlaggedGroup], target_date: date, base_url: str) -> dict:
    """Block Kit payload: totals, top five issues and a link to the review page."""
    total_count = sum(len(group.experiences) for group in groups)
    top_issues = sorted(groups, key=lambda g: len(g.experiences), reverse=True)[:5]

    issue_lines = "\n".join(
        f"• *{group.issue}:* {len(group.experiences)} "
        f"experience{'' if len(group.experiences) == 1 else 's'}"
        for group in top_issues
    )

    return {
        "blocks": [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "🚩 New QC Flagging", "emoji": True},
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        f"*Date:* {_format_date(target_date)}\n"
                        f"*Total Experiences Flagged:* {total_count}"
                    ),
                },
            },
            {"type": "divider"},
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Top Issues:*\n{issue_lines}"},
            },
            {"type": "divider"},
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {
                            "type": "plain_text",
                            "text": "🔗 Review Flagged Experiences",
                            "emoji": True,
                        },
                        "url": f"{base_url.rstrip('/')}/flagged?date={target_date.isoformat()}",
                        "style": "primary",
                    }
                ],
            },
        ]
    }


class SlackNotifier:
    """Posts flagging summaries to a Slack incoming webhook with retries."""

    def __init__(
        self,
        webhook_url: str | None,
        base_url: str = "http://localhost:3000",
        max_retries: int = 3,
        timeout: float = 10.0,
    ):
        self.webhook_url = webhook_url
        self.base_url = base_url
        self.max_retries = max_retries
        self.timeout = timeout

    def notify(self, groups: list[FlaggedGroup], target_date: date) -> bool:
        """Send the summary; returns False when unconfigured or delivery fails."""
        if not self.webhook_url:
            logger.info("Slack webhook URL not configured, skipping notification")
            return False

        message = build_slack_message(groups, target_date, self.base_url)
        for attempt in range(self.max_retries):
            try:
                response = requests.post(self.webhook_url, json=message, timeout=self.timeout)
                response.raise_for_status()
                return True
            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    time.sleep(2 ** attempt)
                    continue
                logger.error("Error sending Slack notification: %s", e)
        return False
