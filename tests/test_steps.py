"""tests/test_steps.py — wizard step progression and submission"""
import re

import httpx
import pytest

from issue_reporter.wizard import (
    MediaFile,
    Step,
    StepController,
    SubmissionAssembler,
    WizardState,
)

MB = 1024 * 1024


def _fill_to_review(controller, values):
    controller.update(**values)
    for _ in range(4):
        assert controller.advance()
    assert controller.step is Step.REVIEW


# ── Advancing ─────────────────────────────────────────────────────────────────

def test_starts_on_issue_details(controller):
    assert controller.step is Step.ISSUE_DETAILS
    assert controller.step.title == "Issue Details"
    assert controller.state is WizardState.EDITING


@pytest.mark.parametrize("step", [Step.ISSUE_DETAILS, Step.REPRODUCIBILITY, Step.ENVIRONMENT, Step.REVIEW])
def test_advance_blocked_by_empty_required_fields(controller, step):
    controller.step = step
    assert controller.advance() is False
    assert controller.step is step
    assert controller.errors
    assert len(controller.notifications) == 1
    assert controller.notifications[0].title == "Validation Error"


def test_advance_reports_every_field_error(controller):
    controller.advance()
    assert set(controller.errors) == {"title", "description", "platform", "product_category", "severity"}


def test_media_step_has_no_requirements(controller):
    controller.step = Step.MEDIA
    assert controller.advance()
    assert controller.step is Step.REVIEW


def test_custom_frequency_blocks_step_one(controller, issue_values):
    controller.update(**issue_values)
    controller.set_value("frequency", "custom")
    assert controller.advance() is False
    assert controller.step is Step.ISSUE_DETAILS
    assert "custom_frequency_description" in controller.errors

    controller.set_value("custom_frequency_description", "Twice a shift")
    assert "custom_frequency_description" not in controller.errors
    assert controller.advance()
    assert controller.step is Step.REPRODUCIBILITY


def test_retreat_then_advance_keeps_position_and_values(controller, issue_values):
    _fill_to_review(controller, issue_values)
    controller.retreat()
    controller.retreat()
    assert controller.step is Step.ENVIRONMENT
    assert controller.advance()
    assert controller.step is Step.MEDIA
    assert controller.values["reproduction_steps"] == issue_values["reproduction_steps"]
    assert controller.values["reported_by"] == issue_values["reported_by"]


def test_retreat_from_first_step_is_noop(controller):
    assert controller.retreat() is False
    assert controller.step is Step.ISSUE_DETAILS


def test_unknown_field_rejected(controller):
    with pytest.raises(KeyError):
        controller.set_value("priority", "high")


# ── Submission ────────────────────────────────────────────────────────────────

def test_full_wizard_submission(controller, issue_values, store):
    controller.add_photos([MediaFile("p1.jpg", "image/jpeg", b"jpeg")])
    _fill_to_review(controller, issue_values)

    assert controller.advance() is False  # terms not accepted yet
    assert controller.state is WizardState.EDITING

    controller.set_value("accept_terms", True)
    assert controller.advance()
    assert controller.state is WizardState.SUBMITTED
    assert controller.step is Step.REVIEW
    assert re.match(r"^IRS-\d{4}$", controller.ticket_id)

    [issue] = store.get_issues()
    assert issue.ticket_id == controller.ticket_id
    assert [m.filename for m in store.get_media_for_issue(issue.id)] == ["p1.jpg"]

    # nothing further happens once submitted
    assert controller.advance() is False
    assert controller.retreat() is False


def test_failed_submission_returns_to_review(issue_values, drafts):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    client = httpx.Client(transport=transport, base_url="http://testserver")
    controller = StepController(assembler=SubmissionAssembler(client), drafts=drafts)
    controller.set_audio(MediaFile("voice-note.webm", "audio/webm", b"ogg"), "00:04")

    _fill_to_review(controller, issue_values)
    controller.set_value("accept_terms", True)

    assert controller.advance() is False
    assert controller.state is WizardState.EDITING
    assert controller.step is Step.REVIEW
    assert controller.notifications[-1].title == "Submission Failed"
    assert controller.notifications[-1].description == "Error: Service Unavailable"
    assert controller.values["title"] == issue_values["title"]
    assert controller.media.audio.duration == "00:04"


def test_invalid_url_returns_to_review(issue_values, drafts):
    def handler(request):
        raise httpx.InvalidURL("Invalid URL")

    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver")
    controller = StepController(assembler=SubmissionAssembler(client), drafts=drafts)
    _fill_to_review(controller, issue_values)
    controller.set_value("accept_terms", True)

    assert controller.advance() is False
    assert controller.state is WizardState.EDITING
    assert controller.notifications[-1].title == "Submission Failed"


class BrokenAssembler(SubmissionAssembler):
    def submit(self, values, media):
        raise RuntimeError("boom")


def test_unexpected_failure_still_returns_to_review(issue_values, drafts):
    controller = StepController(assembler=BrokenAssembler(client=None), drafts=drafts)
    _fill_to_review(controller, issue_values)
    controller.set_value("accept_terms", True)

    with pytest.raises(RuntimeError):
        controller.advance()
    assert controller.state is WizardState.EDITING
    assert controller.step is Step.REVIEW
    assert controller.notifications[-1].title == "Submission Failed"
    assert controller.values["title"] == issue_values["title"]

    # the wizard stays usable
    assert controller.retreat()
    assert controller.step is Step.MEDIA


def test_server_rejection_message_is_surfaced(controller, issue_values):
    _fill_to_review(controller, issue_values)
    # frequency changed after step 1 skips the custom description guard
    controller.set_value("frequency", "custom")
    controller.set_value("accept_terms", True)

    assert controller.advance() is False
    assert controller.state is WizardState.EDITING
    assert "custom frequency" in controller.notifications[-1].description


# ── Drafts ────────────────────────────────────────────────────────────────────

def test_save_draft_keeps_step(controller, issue_values, drafts):
    controller.update(title=issue_values["title"])
    controller.step = Step.ENVIRONMENT

    notification = controller.save_draft()
    assert notification.title == "Draft Saved"
    assert controller.step is Step.ENVIRONMENT
    assert drafts.load()["title"] == issue_values["title"]


def test_restore_draft(controller, drafts):
    drafts.save({"title": "Saved title", "unknown": "ignored"})
    assert controller.restore_draft()
    assert controller.values["title"] == "Saved title"
    assert "unknown" not in controller.values


def test_restore_without_draft(controller):
    assert controller.restore_draft() is False


def test_save_draft_reports_success_even_when_write_fails(controller, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    controller.drafts.path = blocker / "draft.json"
    assert controller.save_draft().title == "Draft Saved"


# ── Attachments through the controller ───────────────────────────────────────

def test_photo_limit_violation_is_one_notification(controller):
    photos = [MediaFile(f"p{i}.jpg", "image/jpeg", b"x") for i in range(11)]
    assert controller.add_photos(photos) is False
    assert controller.media.photos == []
    assert [n.title for n in controller.notifications] == ["Too many files"]


def test_oversized_photo_rejects_batch(controller):
    batch = [
        MediaFile("ok.jpg", "image/jpeg", b"x"),
        MediaFile("huge.jpg", "image/jpeg", b"x" * (10 * MB + 1)),
    ]
    assert controller.add_photos(batch) is False
    assert controller.media.photos == []
    assert len(controller.notifications) == 1


def test_review_summary(controller, issue_values):
    controller.update(**issue_values)
    controller.add_files([MediaFile("device.log", "text/plain", b"x" * 2048)])
    summary = controller.review()
    assert summary["Issue Details"]["title"] == issue_values["title"]
    assert "custom_frequency_description" not in summary["Reproducibility"]
    assert summary["Attachments"] == ["device.log (2.0 KB)"]
