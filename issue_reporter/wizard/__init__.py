"""Client side of issue reporting: the step wizard, attachments and submission."""

from issue_reporter.wizard.buckets import MediaBuckets, MediaConstraintError, MediaFile
from issue_reporter.wizard.capture import (
    AudioRecorder,
    CameraCapture,
    CaptureError,
    CapturePermissionError,
    Dictation,
    MediaDevice,
    SpeechRecognizer,
)
from issue_reporter.wizard.drafts import DraftStore
from issue_reporter.wizard.steps import Notification, Step, StepController, WizardState
from issue_reporter.wizard.submission import SubmissionAssembler, SubmissionError

__all__ = [
    "AudioRecorder",
    "CameraCapture",
    "CaptureError",
    "CapturePermissionError",
    "Dictation",
    "DraftStore",
    "MediaBuckets",
    "MediaConstraintError",
    "MediaDevice",
    "MediaFile",
    "Notification",
    "SpeechRecognizer",
    "Step",
    "StepController",
    "SubmissionAssembler",
    "SubmissionError",
    "WizardState",
]
