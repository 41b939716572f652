"""Background notifications sent after an issue report is stored."""

import logging
import os

import httpx

from issue_reporter.schemas import Issue

logger = logging.getLogger(__name__)


def notify_issue_reported(issue: Issue, attachment_count: int = 0) -> None:
    """Send a Slack notification when a new issue report is stored.

    This is a FastAPI BackgroundTask, run after the response is sent so a
    slow or failing webhook never affects the reporter.

    Args:
        issue: The stored issue, already carrying its ticket id
        attachment_count: Number of media files stored with the issue
    """
    slack_webhook_url = os.environ.get("SLACK_WEBHOOK_URL")
    if not slack_webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not set, skipping notification")
        return

    payload = {
        "blocks": [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": f"New Issue Report {issue.ticket_id or ''}".strip(),
                },
            },
            {
                "type": "section",
                "fields": [
                    {
                        "type": "mrkdwn",
                        "text": f"*Title:*\n{issue.title}",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Severity:*\n{issue.severity.value}",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Product:*\n{issue.product_category.value} ({issue.platform})",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Reported by:*\n{issue.reported_by}",
                    },
                ],
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"*Description:*\n{issue.description}",
                },
            },
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": f"{attachment_count} attachment(s)",
                    },
                ],
            },
        ]
    }

    try:
        with httpx.Client(timeout=5.0) as client:
            response = client.post(slack_webhook_url, json=payload)
            response.raise_for_status()

        logger.info(
            "Slack notification sent successfully",
            extra={"issue_id": issue.id, "ticket_id": issue.ticket_id},
        )

    except httpx.HTTPError:
        logger.exception(
            "Failed to send Slack notification",
            extra={"issue_id": issue.id},
        )
