"""Typed attachment collections held by the wizard.

Each bucket has its own count, size and type limits. Batches are accepted
or rejected as a whole: a violating batch leaves the bucket untouched and
raises a single ``MediaConstraintError``.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

MB = 1024 * 1024


def format_file_size(size: int) -> str:
    """Human-readable size, e.g. ``512 B``, ``1.5 KB``, ``10.0 MB``."""
    if size < 1024:
        return f"{size} B"
    if size < MB:
        return f"{size / 1024:.1f} KB"
    return f"{size / MB:.1f} MB"


def parse_accepted_types(accepted: str) -> list[str]:
    """Split an ``accept`` string such as ``".pdf,.txt,image/*"``."""
    return [item.strip() for item in accepted.split(",") if item.strip()]


@dataclass
class MediaFile:
    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


def matches_accepted_type(media: MediaFile, accepted: Iterable[str]) -> bool:
    """Match by extension (``.pdf``), MIME group (``image/*``) or exact MIME."""
    for item in accepted:
        if item.startswith("."):
            if media.name.lower().endswith(item.lower()):
                return True
        elif "*" in item:
            group = item.split("/")[0]
            if media.content_type.startswith(f"{group}/"):
                return True
        elif media.content_type == item:
            return True
    return False


class MediaConstraintError(ValueError):
    """A batch of attachments violates its bucket's limits."""

    def __init__(self, title: str, description: str):
        self.title = title
        self.description = description
        super().__init__(f"{title}: {description}")


@dataclass(frozen=True)
class BucketRule:
    label: str
    max_count: int
    max_size: int
    accepted_types: tuple[str, ...]

    def check(self, batch: list[MediaFile], existing: int = 0) -> None:
        """Raise one ``MediaConstraintError`` if any part of the batch is invalid."""
        if len(batch) + existing > self.max_count:
            plural = "s" if self.max_count > 1 else ""
            raise MediaConstraintError(
                "Too many files",
                f"You can only upload up to {self.max_count} {self.label}{plural}.",
            )
        if any(media.size > self.max_size for media in batch):
            raise MediaConstraintError(
                "File too large",
                f"Some files exceed the maximum size of {format_file_size(self.max_size)}.",
            )
        if not all(matches_accepted_type(media, self.accepted_types) for media in batch):
            raise MediaConstraintError(
                "Invalid file type",
                f"Only {', '.join(self.accepted_types)} files are accepted.",
            )


PHOTO_RULE = BucketRule("photo", max_count=10, max_size=10 * MB, accepted_types=("image/*",))
VIDEO_RULE = BucketRule("video", max_count=1, max_size=100 * MB, accepted_types=("video/*",))
AUDIO_RULE = BucketRule("recording", max_count=1, max_size=50 * MB, accepted_types=("audio/*",))
FILE_RULE = BucketRule(
    "file",
    max_count=5,
    max_size=50 * MB,
    accepted_types=tuple(parse_accepted_types(
        ".pdf,.txt,.log,.csv,.zip,"
        "application/pdf,text/plain,text/csv,application/zip,application/x-zip-compressed"
    )),
)


@dataclass
class AudioNote:
    file: MediaFile
    duration: str  # MM:SS


class MediaBuckets:
    """Photos, one video, one audio note and generic files."""

    def __init__(self):
        self.photos: list[MediaFile] = []
        self.video: Optional[MediaFile] = None
        self.audio: Optional[AudioNote] = None
        self.files: list[MediaFile] = []

    def add_photos(self, batch: Iterable[MediaFile]) -> None:
        batch = list(batch)
        PHOTO_RULE.check(batch, existing=len(self.photos))
        self.photos.extend(batch)

    def remove_photo(self, index: int) -> MediaFile:
        return self.photos.pop(index)

    def set_video(self, media: MediaFile) -> None:
        """Store the video, replacing any previous one."""
        VIDEO_RULE.check([media])
        self.video = media

    def clear_video(self) -> None:
        self.video = None

    def set_audio(self, media: MediaFile, duration: str) -> None:
        """Store the audio note, replacing any previous recording."""
        AUDIO_RULE.check([media])
        self.audio = AudioNote(media, duration)

    def clear_audio(self) -> None:
        self.audio = None

    def add_files(self, batch: Iterable[MediaFile]) -> None:
        batch = list(batch)
        FILE_RULE.check(batch, existing=len(self.files))
        self.files.extend(batch)

    def remove_file(self, index: int) -> MediaFile:
        return self.files.pop(index)

    def ordered_files(self) -> Iterator[MediaFile]:
        """Photos, then the video, then the audio note, then generic files."""
        yield from self.photos
        if self.video is not None:
            yield self.video
        if self.audio is not None:
            yield self.audio.file
        yield from self.files

    def count(self) -> int:
        return sum(1 for _ in self.ordered_files())
