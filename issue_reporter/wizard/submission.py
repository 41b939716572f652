import json
import logging
from typing import Any, Mapping

import httpx
from pydantic.alias_generators import to_camel

from issue_reporter.wizard.buckets import MediaBuckets

logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    """The report could not be submitted; the message is shown to the reporter."""

    pass


class SubmissionAssembler:
    """Packages the draft and its attachments into one multipart POST.

    The request is sent once and never retried.
    """

    def __init__(self, client: httpx.Client, endpoint: str = "/api/issues"):
        self.client = client
        self.endpoint = endpoint

    def build_request(self, values: Mapping[str, Any], media: MediaBuckets) -> list[tuple[str, tuple]]:
        """Multipart parts: ``issueData`` JSON, then one ``files`` part per attachment."""
        issue_data = json.dumps({to_camel(key) if "_" in key else key: value for key, value in values.items()})
        parts: list[tuple[str, tuple]] = [("issueData", (None, issue_data, "application/json"))]
        parts.extend(
            ("files", (item.name, item.data, item.content_type))
            for item in media.ordered_files()
        )
        return parts

    def submit(self, values: Mapping[str, Any], media: MediaBuckets) -> str:
        """Send the report and return the ticket id from the response."""
        parts = self.build_request(values, media)
        try:
            response = self.client.post(self.endpoint, files=parts)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error("Submission error: %s", exc)
            raise SubmissionError(str(exc) or "Failed to submit issue report") from exc

        if response.is_error:
            message = self._error_message(response)
            logger.error("Submission rejected: %s", message, extra={"status_code": response.status_code})
            raise SubmissionError(message)

        try:
            ticket_id = response.json()["ticketId"]
        except (ValueError, KeyError, TypeError) as exc:
            raise SubmissionError("Unexpected response from server") from exc
        if not isinstance(ticket_id, str) or not ticket_id:
            raise SubmissionError("Unexpected response from server")

        logger.info("Issue report submitted", extra={"ticket_id": ticket_id, "attachments": len(parts) - 1})
        return ticket_id

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            detail = response.json().get("detail")
        except (ValueError, AttributeError):
            detail = None
        if isinstance(detail, str) and detail:
            return detail
        return f"Error: {response.reason_phrase}"
