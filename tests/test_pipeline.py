import pytest

from shared.errors import InvalidFilename, NameCollision, NotAudio, TooLarge, TransferFailed
from shared.models import IngestionTask
from ingest.pipeline import IngestionPipeline, generated_name, validate_requested_name

from conftest import FakeFetcher, PrefixSniffer, MP3_HEADER, WAV_HEADER, PNG_HEADER, TEXT_BODY

URL = "https://files.example.com/download?id=42&name=track.flac"


def make_pipeline(fetcher, now=1700000000.5):
    return IngestionPipeline(fetcher, PrefixSniffer(), clock=lambda: now)


def task_for(folder, name=None, limit=None, uploader="alice"):
    return IngestionTask(source_url=URL, target_dir=folder, uploader_id=uploader,
                         requested_name=name, size_limit=limit)


def visible_files(folder):
    return sorted(p.name for p in folder.iterdir())


def test_commit_with_requested_name(tmp_path):
    body = [MP3_HEADER, b"frame" * 100, b"tail"]
    fetcher = FakeFetcher(body)

    result = make_pipeline(fetcher).run(task_for(tmp_path, name="koishi song"))

    assert result.path == tmp_path / "koishi song.mp3"
    assert result.path.read_bytes() == b"".join(body)
    assert result.bytes_written == sum(len(c) for c in body)
    assert result.mime == "audio/mpeg"
    assert visible_files(tmp_path) == ["koishi song.mp3"]
    assert fetcher.streams[0].closed


def test_generated_name_uses_uploader_and_millis(tmp_path):
    result = make_pipeline(FakeFetcher([WAV_HEADER])).run(task_for(tmp_path, uploader="1234"))
    assert result.path.name == "1234-1700000000500.wav"


def test_extension_comes_from_content_not_url(tmp_path):
    # URL says .flac, bytes say mp3
    result = make_pipeline(FakeFetcher([MP3_HEADER])).run(task_for(tmp_path, name="x"))
    assert result.path.suffix == ".mp3"


@pytest.mark.parametrize("body", [PNG_HEADER, TEXT_BODY])
def test_non_audio_creates_nothing(tmp_path, body):
    fetcher = FakeFetcher([body, b"more" * 10])
    with pytest.raises(NotAudio):
        make_pipeline(fetcher).run(task_for(tmp_path, name="x"))
    assert visible_files(tmp_path) == []
    stream = fetcher.streams[0]
    assert stream.closed
    assert stream.chunks_read == 1


def test_empty_body_is_not_audio(tmp_path):
    with pytest.raises(NotAudio):
        make_pipeline(FakeFetcher([])).run(task_for(tmp_path, name="x"))
    assert visible_files(tmp_path) == []


def test_collision_leaves_existing_file_untouched(tmp_path):
    existing = tmp_path / "song.mp3"
    existing.write_bytes(b"original bytes")
    fetcher = FakeFetcher([MP3_HEADER, b"new"])

    with pytest.raises(NameCollision):
        make_pipeline(fetcher).run(task_for(tmp_path, name="song"))

    assert existing.read_bytes() == b"original bytes"
    assert visible_files(tmp_path) == ["song.mp3"]
    assert fetcher.streams[0].closed
    assert fetcher.streams[0].chunks_read == 1


def test_collision_with_generated_name(tmp_path):
    (tmp_path / "alice-1700000000500.mp3").write_bytes(b"first")
    with pytest.raises(NameCollision):
        make_pipeline(FakeFetcher([MP3_HEADER])).run(task_for(tmp_path))
    assert (tmp_path / "alice-1700000000500.mp3").read_bytes() == b"first"


def test_advertised_size_over_limit_reads_no_body(tmp_path):
    fetcher = FakeFetcher([MP3_HEADER], content_length=10_000)
    with pytest.raises(TooLarge):
        make_pipeline(fetcher).run(task_for(tmp_path, name="big", limit=1_000))
    assert fetcher.head_calls == [URL]
    assert fetcher.streams == []
    assert fetcher.body_bytes_read == 0


def test_size_within_limit(tmp_path):
    fetcher = FakeFetcher([MP3_HEADER], content_length=len(MP3_HEADER))
    result = make_pipeline(fetcher).run(task_for(tmp_path, name="ok", limit=len(MP3_HEADER)))
    assert result.path.exists()


def test_no_probe_without_limit(tmp_path):
    fetcher = FakeFetcher([MP3_HEADER])
    make_pipeline(fetcher).run(task_for(tmp_path, name="x"))
    assert fetcher.head_calls == []


def test_unadvertised_size_enforced_while_streaming(tmp_path):
    fetcher = FakeFetcher([MP3_HEADER, b"x" * 500, b"y" * 500], content_length=None)
    with pytest.raises(TooLarge):
        make_pipeline(fetcher).run(task_for(tmp_path, name="sneaky", limit=600))
    assert visible_files(tmp_path) == []


def test_transfer_error_removes_partial_file(tmp_path):
    fetcher = FakeFetcher([MP3_HEADER, b"a" * 100, b"b" * 100], fail_after=2)
    with pytest.raises(TransferFailed):
        make_pipeline(fetcher).run(task_for(tmp_path, name="broken"))
    assert visible_files(tmp_path) == []
    assert fetcher.streams[0].closed


@pytest.mark.parametrize("name", ["../escape", "a/b", "..", ".", "", "   ", "dir\\file"])
def test_unsafe_names_rejected(tmp_path, name):
    fetcher = FakeFetcher([MP3_HEADER])
    with pytest.raises(InvalidFilename):
        validate_requested_name(name)
    if name.strip():
        with pytest.raises(InvalidFilename):
            make_pipeline(fetcher).run(task_for(tmp_path, name=name))
        assert fetcher.streams == []


def test_generated_name_sanitises_separators():
    assert generated_name("a/b", clock=lambda: 1.5) == "a_b-1500"
