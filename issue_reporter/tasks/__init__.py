"""Background tasks run after a request has been answered.

These are FastAPI BackgroundTasks: quick, fire-and-forget operations such as
notifications that must not delay or fail the reporter's submission.
"""

from issue_reporter.tasks.notifications import notify_issue_reported

__all__ = ["notify_issue_reported"]
