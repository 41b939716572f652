"""The five-step issue reporting wizard.

``StepController`` owns the draft, the attachment buckets and the current
step. Advancing runs the shared validation rules for the current step;
advancing from the last step submits the report instead of moving on.
"""

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Iterable, Optional

from issue_reporter.validation import validate_step
from issue_reporter.wizard.buckets import MediaBuckets, MediaConstraintError, MediaFile, format_file_size
from issue_reporter.wizard.drafts import DraftStore
from issue_reporter.wizard.submission import SubmissionAssembler, SubmissionError

logger = logging.getLogger(__name__)


class Step(IntEnum):
    ISSUE_DETAILS = 1
    REPRODUCIBILITY = 2
    ENVIRONMENT = 3
    MEDIA = 4
    REVIEW = 5

    @property
    def title(self) -> str:
        return STEP_TITLES[self]


STEP_TITLES = {
    Step.ISSUE_DETAILS: "Issue Details",
    Step.REPRODUCIBILITY: "Reproducibility",
    Step.ENVIRONMENT: "Environment",
    Step.MEDIA: "Media & Attachments",
    Step.REVIEW: "Review & Submit",
}

# Review sections, in display order
REVIEW_SECTIONS = {
    Step.ISSUE_DETAILS: ("title", "description", "platform", "product_category", "severity"),
    Step.REPRODUCIBILITY: (
        "frequency",
        "custom_frequency_description",
        "reproducible",
        "reproduction_steps",
        "expected_behavior",
        "actual_behavior",
    ),
    Step.ENVIRONMENT: (
        "software_version",
        "operating_system",
        "os_version",
        "additional_environment",
        "reported_by",
    ),
}

DEFAULT_VALUES: dict[str, Any] = {
    "title": "",
    "description": "",
    "platform": "",
    "product_category": "",
    "severity": "",
    "frequency": "",
    "custom_frequency_description": "",
    "reproducible": "",
    "reproduction_steps": "",
    "expected_behavior": "",
    "actual_behavior": "",
    "software_version": "",
    "operating_system": "",
    "os_version": "",
    "additional_environment": "",
    "reported_by": "",
    "accept_terms": False,
}


class WizardState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"  # or "destructive"


class StepController:
    def __init__(
        self,
        assembler: Optional[SubmissionAssembler] = None,
        drafts: Optional[DraftStore] = None,
    ):
        self.assembler = assembler
        self.drafts = drafts or DraftStore()
        self.step = Step.ISSUE_DETAILS
        self.values: dict[str, Any] = dict(DEFAULT_VALUES)
        self.media = MediaBuckets()
        self.errors: dict[str, str] = {}
        self.notifications: list[Notification] = []
        self.state = WizardState.EDITING
        self.ticket_id: Optional[str] = None

    @property
    def submitting(self) -> bool:
        return self.state is WizardState.SUBMITTING

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title, description, variant)
        self.notifications.append(notification)
        return notification

    # Field values

    def set_value(self, field: str, value: Any) -> None:
        if field not in self.values:
            raise KeyError(field)
        self.values[field] = value
        self.errors.pop(field, None)

    def update(self, **values: Any) -> None:
        for field, value in values.items():
            self.set_value(field, value)

    # Navigation

    def advance(self) -> bool:
        """Validate the current step and move on, or submit from the last step."""
        if self.state is not WizardState.EDITING:
            return False

        errors = validate_step(self.step, self.values)
        if errors:
            self.errors = errors
            logger.debug("Step %d failed validation", self.step, extra={"fields": sorted(errors)})
            self.notify(
                "Validation Error",
                "Please check the form for errors and fill all required fields.",
                "destructive",
            )
            return False

        self.errors = {}
        if self.step is Step.REVIEW:
            return self.submit()

        self.step = Step(self.step + 1)
        return True

    def retreat(self) -> bool:
        """Go back one step; entered values are kept."""
        if self.state is not WizardState.EDITING or self.step is Step.ISSUE_DETAILS:
            return False
        self.step = Step(self.step - 1)
        return True

    # Submission

    def submit(self) -> bool:
        if self.state is not WizardState.EDITING:
            return False
        if self.assembler is None:
            raise RuntimeError("No submission assembler configured")

        self.state = WizardState.SUBMITTING
        try:
            ticket_id = self.assembler.submit(self.values, self.media)
        except SubmissionError as exc:
            self._submission_failed(str(exc))
            return False
        except Exception:
            logger.error("Unexpected submission failure", exc_info=True)
            self._submission_failed("Failed to submit issue report")
            raise

        self.ticket_id = ticket_id
        self.state = WizardState.SUBMITTED
        return True

    def _submission_failed(self, message: str) -> None:
        # Back to the review step with every value and attachment kept
        self.state = WizardState.EDITING
        self.step = Step.REVIEW
        self.notify("Submission Failed", message, "destructive")

    # Drafts

    def save_draft(self) -> Notification:
        """Snapshot the field values; the step does not change."""
        try:
            self.drafts.save(self.values)
        except OSError:
            logger.exception("Failed to save draft", extra={"path": str(self.drafts.path)})
        return self.notify("Draft Saved", "Your form draft has been saved successfully.")

    def restore_draft(self) -> bool:
        draft = self.drafts.load()
        if not draft:
            return False
        for field, value in draft.items():
            if field in self.values:
                self.values[field] = value
        return True

    # Attachments

    def _apply_media(self, change, *args) -> bool:
        try:
            change(*args)
        except MediaConstraintError as exc:
            self.notify(exc.title, exc.description, "destructive")
            return False
        return True

    def add_photos(self, batch: Iterable[MediaFile]) -> bool:
        return self._apply_media(self.media.add_photos, list(batch))

    def set_video(self, media: MediaFile) -> bool:
        return self._apply_media(self.media.set_video, media)

    def set_audio(self, media: MediaFile, duration: str) -> bool:
        return self._apply_media(self.media.set_audio, media, duration)

    def add_files(self, batch: Iterable[MediaFile]) -> bool:
        return self._apply_media(self.media.add_files, list(batch))

    def remove_photo(self, index: int) -> None:
        self.media.remove_photo(index)

    def remove_file(self, index: int) -> None:
        self.media.remove_file(index)

    def clear_video(self) -> None:
        self.media.clear_video()

    def clear_audio(self) -> None:
        self.media.clear_audio()

    def review(self) -> dict[str, Any]:
        """Everything entered so far, grouped the way the review step shows it."""
        summary: dict[str, Any] = {
            STEP_TITLES[step]: {field: self.values[field] for field in fields if self.values[field]}
            for step, fields in REVIEW_SECTIONS.items()
        }
        summary["Attachments"] = [
            f"{item.name} ({format_file_size(item.size)})" for item in self.media.ordered_files()
        ]
        if self.media.audio is not None:
            summary["Audio duration"] = self.media.audio.duration
        return summary
