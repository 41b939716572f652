import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from issue_reporter.database import IssueStore, get_store
from issue_reporter.schemas import Issue, IssueCreate, IssueCreated, IssueDetail, MediaCreate, MediaType
from issue_reporter.tasks import notify_issue_reported
from issue_reporter.tickets import create_ticket
from issue_reporter.uploads import StoredUpload, UploadRejectedError, get_upload_dir, remove_files, save_uploads
from issue_reporter.validation import IssueValidationError, parse_issue_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/issues", tags=["issues"])


# Store calls block on the database and must stay off the event loop.

@router.get("", response_model=list[Issue])
def list_issues(store: IssueStore = Depends(get_store)):
    """List all reported issues."""
    return store.get_issues()


@router.get("/{issue_id}", response_model=IssueDetail, status_code=status.HTTP_200_OK)
def get_issue(issue_id: str, store: IssueStore = Depends(get_store)):
    """Get an issue with its media in upload order"""
    try:
        issue = store.get_issue(int(issue_id))
    except ValueError:
        issue = None

    if not issue:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found"
        )

    return IssueDetail(issue=issue, media=store.get_media_for_issue(issue.id))


def _store_report(store: IssueStore, payload: IssueCreate, stored: list[StoredUpload]) -> Issue:
    """Persist the issue and its media, then create and attach the ticket."""
    issue = store.create_issue(payload)
    for upload in stored:
        store.create_media(
            MediaCreate(
                issue_id=issue.id,
                type=MediaType.from_mime_type(upload.mime_type),
                filename=upload.filename,
                file_path=upload.path,
                mime_type=upload.mime_type,
                file_size=upload.size,
                transcription=None,
            )
        )

    ticket_id = create_ticket(issue)
    return store.attach_ticket(issue.id, ticket_id)


@router.post("", response_model=IssueCreated, status_code=status.HTTP_201_CREATED)
async def create_issue(
    background_tasks: BackgroundTasks,
    issue_data: Optional[str] = Form(None, alias="issueData"),
    files: Optional[list[UploadFile]] = File(None),
    store: IssueStore = Depends(get_store),
    upload_dir: str = Depends(get_upload_dir),
):
    """Create an issue report with optional attachments.

    Uploads are written to disk before the report is validated; every file
    written for this request is removed again if anything fails.
    """
    written: list[str] = []
    try:
        stored = await save_uploads(files or [], upload_dir, written)

        if issue_data is None:
            raise IssueValidationError({"issueData": "Field required"})
        payload = parse_issue_json(issue_data)

        issue = await run_in_threadpool(_store_report, store, payload, stored)

    except IssueValidationError as exc:
        remove_files(written)
        logger.info("Rejected issue report: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except UploadRejectedError as exc:
        remove_files(written)
        logger.info("Rejected upload: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except Exception:
        logger.error("Error creating issue", exc_info=True)
        remove_files(written)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create issue report",
        )

    logger.info(
        "Issue reported",
        extra={"issue_id": issue.id, "ticket_id": issue.ticket_id, "attachments": len(stored)},
    )

    # Notify on creation
    background_tasks.add_task(notify_issue_reported, issue, len(stored))

    return IssueCreated(issue=issue, message="Issue reported successfully", ticket_id=issue.ticket_id)
