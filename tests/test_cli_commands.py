"""Tests for REPL command handlers."""

from unittest.mock import Mock

from upload_client.manager import Transfer, TransferManager
from upload_client.commands import (
    handle_cancel,
    handle_pause,
    handle_resume,
    handle_status,
    handle_upload,
)
from upload_client.exceptions import TransmissionError
from upload_client.models import (
    CancelCommand,
    PauseCommand,
    ResumeCommand,
    StatusCommand,
    UploadCommand,
)


def fake_transfer(transfer_id, name):
    source = Mock()
    source.name = name
    return Transfer(transfer_id=transfer_id, source=source, scheduler=Mock())


def test_handle_upload(sample_file):
    """Test upload command handler with mocked manager."""
    mock_manager = Mock(spec=TransferManager)
    mock_manager.start_upload.return_value = fake_transfer(1, 'sample.bin')

    result = handle_upload(UploadCommand(file_list=(str(sample_file),)), manager=mock_manager)

    assert 'Started #1: sample.bin (200.00 KiB)' in result
    source = mock_manager.start_upload.call_args[0][0]
    assert source.name == 'sample.bin'
    assert source.size == 200 * 1024


def test_handle_upload_reports_each_file(sample_file, tmp_path):
    """Test a missing file or a failed init does not stop the other files."""
    mock_manager = Mock(spec=TransferManager)
    mock_manager.start_upload.side_effect = [
        TransmissionError("Cannot connect to upload server. Is it running?"),
    ]

    result = handle_upload(
        UploadCommand(file_list=(str(tmp_path / 'missing.bin'), str(sample_file))),
        manager=mock_manager,
    )

    lines = result.split('\n')
    assert lines[0].startswith('Error: File not found')
    assert 'Cannot connect' in lines[1]
    assert mock_manager.start_upload.call_count == 1


def test_handle_status():
    mock_manager = Mock(spec=TransferManager)
    mock_manager.status_lines.return_value = ['#1 a.bin: uploading 10%']

    assert handle_status(StatusCommand(), manager=mock_manager) == '#1 a.bin: uploading 10%'

    mock_manager.status_lines.return_value = []
    assert handle_status(StatusCommand(), manager=mock_manager) == 'No transfers.'


def test_handle_pause_one():
    mock_manager = Mock(spec=TransferManager)
    mock_manager.pause.return_value = [fake_transfer(2, 'b.bin')]

    result = handle_pause(PauseCommand(transfer_id=2), manager=mock_manager)

    assert result == 'Paused #2 b.bin'
    mock_manager.pause.assert_called_once_with(2)


def test_handle_resume_all():
    mock_manager = Mock(spec=TransferManager)
    mock_manager.resume.return_value = [fake_transfer(1, 'a.bin'), fake_transfer(2, 'b.bin')]

    result = handle_resume(ResumeCommand(), manager=mock_manager)

    assert result == 'Resumed #1 a.bin\nResumed #2 b.bin'
    mock_manager.resume.assert_called_once_with(None)


def test_handle_cancel_unknown_id():
    mock_manager = Mock(spec=TransferManager)
    mock_manager.cancel.side_effect = KeyError('No transfer #9')

    assert handle_cancel(CancelCommand(transfer_id=9), manager=mock_manager) == 'Error: No transfer #9'


def test_handle_cancel_nothing_running():
    mock_manager = Mock(spec=TransferManager)
    mock_manager.cancel.return_value = []

    assert handle_cancel(CancelCommand(), manager=mock_manager) == 'No transfers to update.'
