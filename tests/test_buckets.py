"""tests/test_buckets.py — attachment limits"""
import pytest

from issue_reporter.wizard.buckets import (
    MediaBuckets,
    MediaConstraintError,
    MediaFile,
    format_file_size,
    matches_accepted_type,
    parse_accepted_types,
)

MB = 1024 * 1024


def _photo(i=0, size=16):
    return MediaFile(f"photo_{i}.jpg", "image/jpeg", b"x" * size)


def test_photos_up_to_ten():
    buckets = MediaBuckets()
    buckets.add_photos(_photo(i) for i in range(6))
    buckets.add_photos(_photo(i) for i in range(6, 10))
    assert len(buckets.photos) == 10

    with pytest.raises(MediaConstraintError) as exc_info:
        buckets.add_photos([_photo(11)])
    assert exc_info.value.title == "Too many files"
    assert len(buckets.photos) == 10


def test_photo_batch_rejected_as_a_whole():
    buckets = MediaBuckets()
    batch = [_photo(0), _photo(1, size=10 * MB + 1), _photo(2)]
    with pytest.raises(MediaConstraintError) as exc_info:
        buckets.add_photos(batch)
    assert exc_info.value.description == "Some files exceed the maximum size of 10.0 MB."
    assert buckets.photos == []


def test_photo_must_be_an_image():
    buckets = MediaBuckets()
    with pytest.raises(MediaConstraintError):
        buckets.add_photos([MediaFile("notes.txt", "text/plain", b"x")])


def test_second_video_replaces_first():
    buckets = MediaBuckets()
    first = MediaFile("video_1.webm", "video/webm", b"one")
    second = MediaFile("video_2.webm", "video/webm", b"two")
    buckets.set_video(first)
    buckets.set_video(second)
    assert buckets.video is second
    assert list(buckets.ordered_files()) == [second]


def test_video_size_limit():
    buckets = MediaBuckets()
    with pytest.raises(MediaConstraintError):
        buckets.set_video(MediaFile("long.mp4", "video/mp4", b"x" * (100 * MB + 1)))
    assert buckets.video is None


def test_audio_requires_audio_mime_type():
    buckets = MediaBuckets()
    with pytest.raises(MediaConstraintError):
        buckets.set_audio(MediaFile("voice.webm", "video/webm", b"x"), "00:03")
    buckets.set_audio(MediaFile("voice.webm", "audio/webm", b"x"), "00:03")
    assert buckets.audio.duration == "00:03"


def test_audio_size_limit():
    buckets = MediaBuckets()
    with pytest.raises(MediaConstraintError):
        buckets.set_audio(MediaFile("voice.wav", "audio/wav", b"x" * (50 * MB + 1)), "10:00")


@pytest.mark.parametrize(
    "name, content_type",
    [
        ("report.pdf", "application/octet-stream"),
        ("DEVICE.LOG", "application/octet-stream"),
        ("export", "text/csv"),
        ("bundle.bin", "application/x-zip-compressed"),
    ],
)
def test_generic_file_accepted_by_extension_or_mime(name, content_type):
    buckets = MediaBuckets()
    buckets.add_files([MediaFile(name, content_type, b"x")])
    assert len(buckets.files) == 1


def test_generic_file_type_rejected():
    buckets = MediaBuckets()
    with pytest.raises(MediaConstraintError) as exc_info:
        buckets.add_files([MediaFile("tool.exe", "application/x-msdownload", b"x")])
    assert exc_info.value.title == "Invalid file type"


def test_generic_files_up_to_five():
    buckets = MediaBuckets()
    buckets.add_files(MediaFile(f"f{i}.txt", "text/plain", b"x") for i in range(5))
    with pytest.raises(MediaConstraintError):
        buckets.add_files([MediaFile("f5.txt", "text/plain", b"x")])
    assert len(buckets.files) == 5


def test_ordered_files():
    buckets = MediaBuckets()
    photos = [_photo(0), _photo(1)]
    video = MediaFile("v.webm", "video/webm", b"v")
    audio = MediaFile("voice-note.webm", "audio/webm", b"a")
    document = MediaFile("d.pdf", "application/pdf", b"d")

    buckets.add_files([document])
    buckets.set_audio(audio, "00:01")
    buckets.set_video(video)
    buckets.add_photos(photos)

    assert list(buckets.ordered_files()) == [*photos, video, audio, document]
    assert buckets.count() == 5

    buckets.remove_photo(0)
    buckets.clear_audio()
    assert list(buckets.ordered_files()) == [photos[1], video, document]


def test_accept_string_matching():
    accepted = parse_accepted_types(" image/*, .PDF ,text/plain")
    assert accepted == ["image/*", ".PDF", "text/plain"]
    assert matches_accepted_type(MediaFile("a.png", "image/png", b""), accepted)
    assert matches_accepted_type(MediaFile("a.pdf", "", b""), accepted)
    assert matches_accepted_type(MediaFile("a", "text/plain", b""), accepted)
    assert not matches_accepted_type(MediaFile("a.mp4", "video/mp4", b""), accepted)


@pytest.mark.parametrize(
    "size, expected",
    [(512, "512 B"), (1536, "1.5 KB"), (10 * MB, "10.0 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected
