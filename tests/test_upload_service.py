"""Tests for the server-side session, receiver and assembler logic."""

import threading

import pytest

from common.checksum import ArtifactDigest, sha256_hex
from common.constants import MIB
from upload_client.planner import chunk_spans, plan_transfer
from upload_server.exceptions import (
    ChecksumMismatchError,
    InvalidChunkError,
    MissingChunkError,
    SessionNotFoundError,
    SizeMismatchError,
)


def open_session(service, name="object.bin", size=0, mime_type="application/octet-stream"):
    return service.init_upload(name, size, mime_type).session_id


def upload_all(service, session_id, data, chunk_size, order=None):
    spans = list(chunk_spans(len(data), chunk_size))
    for index in (order if order is not None else range(len(spans))):
        span = spans[index]
        service.put_chunk(session_id, index, data[span.start:span.end])
    return len(spans)


def test_init_creates_isolated_session(upload_service, temp_root):
    first = upload_service.init_upload("a.bin", 10, "application/octet-stream")
    second = upload_service.init_upload("a.bin", 10, "application/octet-stream")

    assert first.session_id != second.session_id
    assert first.recommended_chunk_size == upload_service.recommended_chunk_size
    assert first.already_received_indices == []
    assert (temp_root / first.session_id).is_dir()
    assert (temp_root / second.session_id).is_dir()


def test_out_of_order_chunks_assemble_in_index_order(upload_service, random_payload, output_root):
    data = random_payload(5 * 1000 + 1)
    session_id = open_session(upload_service, size=len(data))

    total = upload_all(upload_service, session_id, data, 1000, order=[5, 2, 0, 4, 1, 3])
    result = upload_service.finalize(session_id, total, "object.bin")

    assert (output_root / "object.bin").read_bytes() == data
    assert result.size == len(data)
    assert result.checksum == sha256_hex(data)
    assert result.final_path == str((output_root / "object.bin").resolve())


def test_missing_chunk_is_reported_and_session_kept(upload_service, random_payload, output_root):
    """Test chunks {0,1,3,4} of 5 fail with MissingChunk(2) and can be completed later."""
    data = random_payload(5 * 100)
    session_id = open_session(upload_service, size=len(data))
    upload_all(upload_service, session_id, data, 100, order=[0, 1, 3, 4])

    with pytest.raises(MissingChunkError) as exc_info:
        upload_service.finalize(session_id, 5, "object.bin")

    assert exc_info.value.chunk_index == 2
    assert list(output_root.iterdir()) == []
    assert upload_service.get_session_status(session_id)["received_indices"] == [0, 1, 3, 4]

    upload_service.put_chunk(session_id, 2, data[200:300])
    upload_service.finalize(session_id, 5, "object.bin")

    assert (output_root / "object.bin").read_bytes() == data


def test_second_finalize_fails_with_session_not_found(upload_service, temp_root):
    session_id = open_session(upload_service, size=3)
    upload_service.put_chunk(session_id, 0, b"abc")

    upload_service.finalize(session_id, 1, "abc.txt")

    with pytest.raises(SessionNotFoundError):
        upload_service.finalize(session_id, 1, "abc.txt")
    with pytest.raises(SessionNotFoundError):
        upload_service.put_chunk(session_id, 0, b"abc")
    assert not (temp_root / session_id).exists()


def test_concurrent_finalize_assembles_once(upload_service, random_payload):
    data = random_payload(20 * 1000)
    session_id = open_session(upload_service, size=len(data))
    total = upload_all(upload_service, session_id, data, 1000)
    outcomes = []

    def finalize():
        try:
            outcomes.append(upload_service.finalize(session_id, total, "race.bin"))
        except SessionNotFoundError as e:
            outcomes.append(e)

    threads = [threading.Thread(target=finalize) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(successes) == 1
    assert sum(isinstance(o, SessionNotFoundError) for o in outcomes) == 3


def test_repeated_put_overwrites(upload_service, output_root):
    session_id = open_session(upload_service, size=4)

    upload_service.put_chunk(session_id, 0, b"xxxx")
    upload_service.put_chunk(session_id, 0, b"abcd")
    upload_service.finalize(session_id, 1, "dup.txt")

    assert (output_root / "dup.txt").read_bytes() == b"abcd"


def test_unknown_session(upload_service):
    with pytest.raises(SessionNotFoundError):
        upload_service.put_chunk("0" * 32, 0, b"data")
    with pytest.raises(SessionNotFoundError):
        upload_service.finalize("0" * 32, 1, "x")
    with pytest.raises(SessionNotFoundError):
        upload_service.get_session_status("0" * 32)


def test_negative_index_rejected(upload_service):
    session_id = open_session(upload_service, size=1)

    with pytest.raises(InvalidChunkError):
        upload_service.put_chunk(session_id, -1, b"x")
    with pytest.raises(InvalidChunkError):
        upload_service.finalize(session_id, -1, "x")


def test_checksum_verified_on_put(upload_service):
    session_id = open_session(upload_service, size=4)

    receipt = upload_service.put_chunk(session_id, 0, b"good", sha256_hex(b"good").upper())
    assert receipt.byte_length == 4

    with pytest.raises(ChecksumMismatchError) as exc_info:
        upload_service.put_chunk(session_id, 1, b"evil", sha256_hex(b"good"))
    assert exc_info.value.chunk_index == 1
    assert upload_service.get_session_status(session_id)["received_indices"] == [0]


def test_size_mismatch_keeps_session_and_exposes_nothing(upload_service, output_root):
    session_id = open_session(upload_service, size=10)
    upload_service.put_chunk(session_id, 0, b"12345")

    with pytest.raises(SizeMismatchError):
        upload_service.finalize(session_id, 1, "short.bin")

    assert list(output_root.iterdir()) == []
    assert upload_service.get_session_status(session_id)["received_bytes"] == 5


@pytest.mark.parametrize("name", [
    "../../etc/passwd",
    "..\\..\\evil.txt",
    "nested/dir/file.txt",
    "..",
    "",
])
def test_final_path_stays_inside_output_root(upload_service, output_root, name):
    session_id = open_session(upload_service, size=3)
    upload_service.put_chunk(session_id, 0, b"abc")

    result = upload_service.finalize(session_id, 1, name)

    final_path = output_root.resolve() / result.sanitized_name
    assert result.final_path == str(final_path)
    assert final_path.parent == output_root.resolve()
    assert final_path.read_bytes() == b"abc"
    assert result.original_name == name


def test_zero_byte_object(upload_service, output_root):
    session_id = open_session(upload_service, size=0)

    result = upload_service.finalize(session_id, 0, "empty.txt")

    assert result.size == 0
    assert (output_root / "empty.txt").read_bytes() == b""


def test_same_name_overwrites_previous_artifact(upload_service, output_root):
    for content in (b"old version", b"new"):
        session_id = open_session(upload_service, size=len(content))
        upload_service.put_chunk(session_id, 0, content)
        upload_service.finalize(session_id, 1, "same.txt")

    assert (output_root / "same.txt").read_bytes() == b"new"
    assert sorted(p.name for p in output_root.iterdir()) == ["same.txt"]


def test_120mb_object_in_twelve_chunks(upload_service, output_root):
    """Test a 120 MiB object planned into 12 chunks of 10 MiB assembles exactly."""
    object_size = 120 * MIB
    plan = plan_transfer(object_size)
    assert (plan.chunk_size, plan.concurrency, plan.max_retries) == (10 * MIB, 4, 3)

    spans = list(chunk_spans(object_size, plan.chunk_size))
    assert len(spans) == 12

    expected = ArtifactDigest()
    session_id = open_session(upload_service, name="big.bin", size=object_size)
    for span in reversed(spans):
        upload_service.put_chunk(session_id, span.index, bytes([span.index]) * span.length)
    for span in spans:
        expected.update(bytes([span.index]) * span.length)

    result = upload_service.finalize(session_id, len(spans), "big.bin")

    assert result.size == object_size
    assert (output_root / "big.bin").stat().st_size == object_size
    assert result.checksum == expected.hexdigest()
