"""Tests for progress formatting helpers."""

import pytest

from upload_client.types import TransferState, TransferStatus
from upload_client.utils import format_duration, format_file_size, format_progress


@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (1023, "1023 B"),
    (1536, "1.50 KiB"),
    (10 * 1024 * 1024, "10.00 MiB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


@pytest.mark.parametrize("seconds, expected", [
    (None, "--"),
    (42, "42s"),
    (185, "3m05s"),
    (3720, "1h02m"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_format_progress_uploading():
    state = TransferState(
        total_bytes=4096,
        sent_bytes=1024,
        status=TransferStatus.UPLOADING,
        speed_bps=1024.0,
        eta_seconds=3.0,
    )

    assert format_progress(state, color=False) == "uploading 25% 1.00 KiB / 4.00 KiB 1.00 KiB/s ETA 3s"


def test_format_progress_done_and_error():
    done = TransferState(total_bytes=10, sent_bytes=10, status=TransferStatus.DONE, final_path="/srv/a.bin")
    failed = TransferState(total_bytes=10, sent_bytes=0, status=TransferStatus.ERROR, last_error="boom")

    assert format_progress(done, color=False) == "done 100% 10 B / 10 B -> /srv/a.bin"
    assert format_progress(failed, color=False) == "error 0% 0 B / 10 B (boom)"
