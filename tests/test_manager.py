"""Tests for the multi-object transfer manager."""

import threading

import pytest

from upload_client.manager import TransferManager
from upload_client.retry import RetryPolicy
from upload_client.sources import BytesSource
from upload_client.types import TransferStatus

FAST_RETRIES = RetryPolicy(base_delay=0.01, large_object_extra_delay=0.0)


def test_recommended_chunk_size_overrides_plan(make_transport, random_payload):
    transport = make_transport(recommended_chunk_size=1000)
    manager = TransferManager(transport, retry_policy=FAST_RETRIES)
    data = random_payload(4500)

    transfer = manager.start_upload(BytesSource(data, "doc.pdf", "application/pdf"))
    state = transfer.scheduler.wait(10)

    assert state.status == TransferStatus.DONE
    assert transfer.scheduler.total_chunks == 5
    assert transport.assembled() == data


def test_transfer_ids_increment(make_transport):
    manager = TransferManager(make_transport(), retry_policy=FAST_RETRIES)

    first = manager.start_upload(BytesSource(b"one", "1.txt"))
    second = manager.start_upload(BytesSource(b"two", "2.txt"))
    manager.wait_all(10)

    assert (first.transfer_id, second.transfer_id) == (1, 2)
    assert [t.transfer_id for t in manager.list_transfers()] == [1, 2]
    assert manager.get(2) is second


def test_unknown_transfer_id(make_transport):
    manager = TransferManager(make_transport())

    with pytest.raises(KeyError):
        manager.pause(42)


def test_pause_and_resume_all(make_transport, random_payload):
    gate = threading.Event()
    manager = TransferManager(make_transport(recommended_chunk_size=512, gate=gate), retry_policy=FAST_RETRIES)
    manager.start_upload(BytesSource(random_payload(4096), "a.bin"))
    manager.start_upload(BytesSource(random_payload(4096), "b.bin"))

    paused = manager.pause()
    gate.set()

    assert len(paused) == 2
    for transfer in paused:
        assert transfer.scheduler.wait_for_status(TransferStatus.PAUSED, timeout=5)
    assert manager.has_active_transfers()
    assert "paused" in manager.toolbar_text()

    manager.resume()
    states = manager.wait_all(10)

    assert [s.status for s in states] == [TransferStatus.DONE, TransferStatus.DONE]
    assert not manager.has_active_transfers()
    assert manager.toolbar_text() == "no active transfers"


def test_cancel_one_transfer(make_transport, random_payload):
    gate = threading.Event()
    manager = TransferManager(make_transport(recommended_chunk_size=512, gate=gate), retry_policy=FAST_RETRIES)
    first = manager.start_upload(BytesSource(random_payload(2048), "a.bin"))
    second = manager.start_upload(BytesSource(random_payload(2048), "b.bin"))

    cancelled = manager.cancel(first.transfer_id)
    gate.set()

    assert cancelled == [first]
    assert second.scheduler.wait(10).status == TransferStatus.DONE
    assert first.state.status == TransferStatus.PENDING


def test_failed_object_does_not_affect_batch(make_transport, random_payload):
    """Test a transport failing one object leaves the other objects done."""
    transport = make_transport(recommended_chunk_size=1024)
    manager = TransferManager(transport, retry_policy=FAST_RETRIES)

    good = manager.start_upload(BytesSource(random_payload(3000), "good.bin"))
    good.scheduler.wait(10)
    transport.failures = {0: 100}
    bad = manager.start_upload(BytesSource(random_payload(3000), "bad.bin"))
    bad_state = bad.scheduler.wait(10)

    assert good.state.status == TransferStatus.DONE
    assert bad_state.status == TransferStatus.ERROR
    assert "Chunk 0" in bad_state.last_error

    lines = manager.status_lines(color=False)
    assert lines[0].startswith("#1 good.bin: done 100%")
    assert lines[1].startswith("#2 bad.bin: error")


def test_upload_files_missing_path(make_transport, tmp_path):
    manager = TransferManager(make_transport())

    with pytest.raises(FileNotFoundError):
        manager.upload_files([str(tmp_path / "nope.bin")])
