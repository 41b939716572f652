"""Adapters turning device capabilities into wizard attachments or field text.

The hardware itself (speech engine, camera, microphone) is reached through
``SpeechRecognizer`` and ``MediaDevice`` implementations supplied by the
host. Every capture run is a session with its own token, and late results
carrying a token that is no longer active are dropped.

A permission denial is sticky: the adapter stays in the error state and
refuses to start again until ``retry()`` is called.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from issue_reporter.wizard.buckets import MediaFile

logger = logging.getLogger(__name__)

# Recognizer error codes that mean the microphone is unavailable to us
PERMISSION_ERRORS = frozenset({"not-allowed", "permission-denied", "aborted"})

# Preferred first; None lets the device pick
RECORDER_MIME_TYPES = ("video/webm;codecs=vp9,opus", "video/mp4", None)


def _new_token() -> str:
    return uuid.uuid4().hex


def format_duration(seconds: float) -> str:
    """Format elapsed seconds as ``MM:SS``."""
    seconds = int(seconds)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class CaptureState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ERROR = "error"


class CaptureError(Exception):
    """A capture could not be started or completed."""

    pass


class CapturePermissionError(CaptureError):
    """Access to the device was denied; requires an explicit retry."""

    pass


@dataclass
class CaptureSession:
    token: str = field(default_factory=_new_token)


@dataclass
class DictationSession(CaptureSession):
    field_id: str = ""
    language: str = "en-US"
    continuous: bool = False
    interim_results: bool = True


class SpeechRecognizer:
    """Speech engine used by ``Dictation``.

    Implementations report back through ``Dictation.handle_result``,
    ``handle_error`` and ``handle_end``, passing the session token they were
    started with.
    """

    def start(self, session: DictationSession) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class MediaDevice:
    """Camera and microphone access used by the capture adapters."""

    def open_stream(self, video: bool, audio: bool, facing_mode: Optional[str] = None):
        """Acquire a media stream; raise ``PermissionError`` when denied."""
        raise NotImplementedError

    def snapshot(self, stream) -> bytes:
        """Grab the current video frame as JPEG bytes."""
        raise NotImplementedError

    def start_recording(self, stream, mime_type: Optional[str]) -> str:
        """Start recording and return the MIME type in use.

        Raises ``ValueError`` when ``mime_type`` is not supported.
        """
        raise NotImplementedError

    def stop_recording(self, stream) -> bytes:
        raise NotImplementedError

    def release(self, stream) -> None:
        """Stop every track of the stream."""
        raise NotImplementedError


class CaptureAdapter:
    """Session bookkeeping and the sticky error state."""

    def __init__(self):
        self.state = CaptureState.IDLE
        self.error: Optional[str] = None
        self.session: Optional[CaptureSession] = None

    def is_current(self, token: str) -> bool:
        return self.session is not None and self.session.token == token

    def retry(self) -> None:
        """Clear a permission error so the adapter may be started again."""
        if self.state is CaptureState.ERROR:
            self.state = CaptureState.IDLE
            self.error = None

    def _begin(self, session: CaptureSession) -> CaptureSession:
        if self.state is CaptureState.ERROR:
            raise CapturePermissionError(self.error)
        self.session = session
        self.state = CaptureState.ACTIVE
        return session

    def _end(self) -> None:
        self.session = None
        if self.state is not CaptureState.ERROR:
            self.state = CaptureState.IDLE

    def _deny(self, message: str) -> CapturePermissionError:
        self.session = None
        self.state = CaptureState.ERROR
        self.error = message
        logger.warning("Capture permission denied: %s", message, extra={"adapter": type(self).__name__})
        return CapturePermissionError(message)


class Dictation(CaptureAdapter):
    """Speech-to-text into one form field at a time."""

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        on_transcript: Callable[[str, str], None],
        language: str = "en-US",
    ):
        super().__init__()
        self.recognizer = recognizer
        self.on_transcript = on_transcript
        self.language = language

    @property
    def field_id(self) -> Optional[str]:
        return self.session.field_id if self.session else None

    def start(self, field_id: str) -> DictationSession:
        if self.session is not None:
            self.stop()

        session = self._begin(DictationSession(field_id=field_id, language=self.language))
        try:
            self.recognizer.start(session)
        except PermissionError as exc:
            raise self._deny("Please allow microphone access to use dictation") from exc
        except OSError as exc:
            self._end()
            raise CaptureError("Couldn't start the dictation. Please try again.") from exc

        logger.debug("Dictation started", extra={"field_id": field_id})
        return session

    def stop(self) -> None:
        if self.session is None:
            return
        try:
            self.recognizer.stop()
        finally:
            self._end()

    def toggle(self, field_id: str) -> Optional[DictationSession]:
        """Stop dictating into ``field_id`` if active, otherwise start."""
        if self.field_id == field_id:
            self.stop()
            return None
        return self.start(field_id)

    def handle_result(self, token: str, results: Sequence[tuple[str, bool]]) -> bool:
        """Apply recognizer results given as ``(transcript, is_final)`` pairs.

        Returns False when the token belongs to a session that is no longer
        active, in which case nothing is written.
        """
        if not self.is_current(token):
            logger.debug("Ignoring dictation result for stale session")
            return False

        final = "".join(f"{text} " for text, is_final in results if is_final)
        interim = "".join(text for text, is_final in results if not is_final)
        transcript = (final or interim).strip()
        if transcript:
            self.on_transcript(self.session.field_id, transcript)
        return True

    def handle_error(self, token: str, error: str) -> None:
        if not self.is_current(token):
            return
        logger.error("Speech recognition error: %s", error, extra={"field_id": self.field_id})
        if error in PERMISSION_ERRORS:
            self._deny("Please allow microphone access to use dictation")
        else:
            self._end()

    def handle_end(self, token: str) -> None:
        # One utterance per activation
        if self.is_current(token):
            self._end()


class CameraCapture(CaptureAdapter):
    """Photo snapshots or a single video recording from a camera."""

    def __init__(self, device: MediaDevice, mode: str = "photo", clock: Callable[[], float] = time.time):
        if mode not in ("photo", "video"):
            raise ValueError(f"Unknown camera mode: {mode}")
        super().__init__()
        self.device = device
        self.mode = mode
        self.clock = clock
        self.facing_mode = "environment"
        self.recording_mime_type: Optional[str] = None
        self._stream = None

    def __enter__(self) -> "CameraCapture":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def recording(self) -> bool:
        return self.recording_mime_type is not None

    def open(self) -> CaptureSession:
        if self._stream is not None:
            raise CaptureError("Camera is already open")

        session = self._begin(CaptureSession())
        try:
            self._stream = self.device.open_stream(
                video=True, audio=self.mode == "video", facing_mode=self.facing_mode
            )
        except PermissionError as exc:
            raise self._deny(
                "Camera access denied. Please enable camera permissions in your browser settings."
            ) from exc
        except OSError as exc:
            self._end()
            raise CaptureError(
                "Error accessing camera. Make sure your device has a camera and try again."
            ) from exc
        return session

    def switch_camera(self) -> None:
        """Toggle between the rear and the front camera."""
        self.facing_mode = "user" if self.facing_mode == "environment" else "environment"
        if self._stream is not None and not self.recording:
            self.close()
            self.open()

    def take_photo(self) -> MediaFile:
        self._require_stream("photo")
        data = self.device.snapshot(self._stream)
        return MediaFile(f"photo_{self._millis()}.jpg", "image/jpeg", data)

    def start_recording(self) -> None:
        self._require_stream("video")
        if self.recording:
            raise CaptureError("Already recording")
        for mime_type in RECORDER_MIME_TYPES:
            try:
                self.recording_mime_type = self.device.start_recording(self._stream, mime_type)
                return
            except ValueError:
                logger.debug("Recorder does not support %s", mime_type)
        raise CaptureError("Video recording is not supported on this device")

    def stop_recording(self) -> MediaFile:
        """Finish the recording and return it as one video file."""
        self._require_stream("video")
        if not self.recording:
            raise CaptureError("Not recording")

        data = self.device.stop_recording(self._stream)
        content_type = self.recording_mime_type.split(";")[0] or "video/webm"
        self.recording_mime_type = None
        extension = "mp4" if content_type == "video/mp4" else "webm"
        return MediaFile(f"video_{self._millis()}.{extension}", content_type, data)

    def close(self) -> None:
        """Release the stream's tracks."""
        if self._stream is not None:
            stream, self._stream = self._stream, None
            try:
                if self.recording:
                    self.recording_mime_type = None
                    self.device.stop_recording(stream)
            finally:
                self.device.release(stream)
        self._end()

    def _require_stream(self, mode: str) -> None:
        if self.mode != mode:
            raise CaptureError(f"Camera is in {self.mode} mode")
        if self._stream is None:
            raise CaptureError("Camera is not open")

    def _millis(self) -> int:
        return int(self.clock() * 1000)


class AudioRecorder(CaptureAdapter):
    """Voice notes from the microphone."""

    def __init__(self, device: MediaDevice, clock: Callable[[], float] = time.monotonic):
        super().__init__()
        self.device = device
        self.clock = clock
        self._stream = None
        self._started_at: Optional[float] = None

    @property
    def recording(self) -> bool:
        return self._stream is not None

    def elapsed(self) -> str:
        if self._started_at is None:
            return format_duration(0)
        return format_duration(self.clock() - self._started_at)

    def start(self) -> CaptureSession:
        if self.recording:
            raise CaptureError("Already recording")

        session = self._begin(CaptureSession())
        try:
            self._stream = self.device.open_stream(video=False, audio=True)
        except PermissionError as exc:
            raise self._deny("Please allow microphone access to record audio.") from exc
        except OSError as exc:
            self._end()
            raise CaptureError("Error accessing microphone.") from exc

        try:
            self.device.start_recording(self._stream, "audio/webm")
        except BaseException:
            self._release()
            raise
        self._started_at = self.clock()
        return session

    def stop(self) -> tuple[MediaFile, str]:
        """Finish recording; returns the audio note and its ``MM:SS`` duration."""
        if not self.recording:
            raise CaptureError("Not recording")

        duration = self.elapsed()
        try:
            data = self.device.stop_recording(self._stream)
        finally:
            self._release()
        return MediaFile("voice-note.webm", "audio/webm", data), duration

    def _release(self) -> None:
        stream, self._stream = self._stream, None
        self._started_at = None
        try:
            self.device.release(stream)
        finally:
            self._end()
