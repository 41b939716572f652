import logging
import random

from issue_reporter import config
from issue_reporter.schemas import Issue

logger = logging.getLogger(__name__)


def create_ticket(issue: Issue, prefix: str = config.TICKET_PREFIX) -> str:
    """Create a tracking ticket for an issue and return its identifier.

    Stands in for a ticketing-system integration: the identifier is the
    prefix plus a random four-digit number and is not guaranteed unique.
    """
    ticket_id = f"{prefix}-{random.randint(1000, 9999)}"
    logger.info("Ticket created", extra={"issue_id": issue.id, "ticket_id": ticket_id})
    return ticket_id
