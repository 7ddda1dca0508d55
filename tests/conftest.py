"""Shared pytest fixtures for all tests."""

import os
import threading

import pytest
from fastapi.testclient import TestClient

from common.checksum import sha256_hex
from upload_client.config import Config
from upload_client.exceptions import TransmissionError
from upload_client.types import FinalizeResult, UploadSessionInfo
from upload_server.main import create_app
from upload_server.services.upload_service import UploadService

TEST_RECOMMENDED_CHUNK_SIZE = 64 * 1024


class InMemoryTransport:
    """
    Upload transport keeping chunks in a dict.

    Failures are injected per chunk index: ``failures[i] = n`` makes the
    first ``n`` sends of chunk ``i`` raise ``error_factory()``. When ``gate``
    is given every put blocks until it is set.
    """

    def __init__(self, recommended_chunk_size=None, failures=None, error_factory=None, gate=None):
        self.recommended_chunk_size = recommended_chunk_size
        self.failures = dict(failures or {})
        self.error_factory = error_factory or (lambda: TransmissionError("connection reset"))
        self.gate = gate
        self.chunks = {}
        self.put_calls = []
        self.finalize_calls = []
        self.finalize_error = None
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def init_upload(self, object_name, declared_size, mime_type):
        return UploadSessionInfo(
            session_id=os.urandom(16).hex(),
            recommended_chunk_size=self.recommended_chunk_size,
        )

    def put_chunk(self, session_id, chunk_index, data, checksum=None):
        with self._lock:
            self.put_calls.append(chunk_index)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                assert self.gate.wait(10), "gate was never opened"
            with self._lock:
                remaining = self.failures.get(chunk_index, 0)
                if remaining:
                    self.failures[chunk_index] = remaining - 1
                    raise self.error_factory()
                self.chunks[chunk_index] = bytes(data)
            return len(data)
        finally:
            with self._lock:
                self.active -= 1

    def finalize(self, session_id, total_chunks, object_name):
        self.finalize_calls.append((session_id, total_chunks, object_name))
        if self.finalize_error is not None:
            raise self.finalize_error
        data = b''.join(self.chunks[i] for i in range(total_chunks))
        return FinalizeResult(
            final_path=f"/uploads/{object_name}",
            original_name=object_name,
            sanitized_name=object_name,
            size=len(data),
            checksum=sha256_hex(data),
        )

    def assembled(self):
        return b''.join(self.chunks[i] for i in sorted(self.chunks))

    def put_count(self, chunk_index):
        with self._lock:
            return self.put_calls.count(chunk_index)


@pytest.fixture
def make_transport():
    """Factory for InMemoryTransport instances."""
    return InMemoryTransport


@pytest.fixture
def random_payload():
    """Factory for random object bytes of a given size."""
    return os.urandom


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .chunkup directory
    """
    config_dir = tmp_path / '.chunkup'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing uploads.

    Returns:
        Path to a 200 KiB binary file
    """
    file_path = tmp_path / 'sample.bin'
    file_path.write_bytes(os.urandom(200 * 1024))
    return file_path


@pytest.fixture
def temp_root(tmp_path):
    return tmp_path / 'tmp_uploads'


@pytest.fixture
def output_root(tmp_path):
    return tmp_path / 'uploads'


@pytest.fixture
def upload_service(temp_root, output_root):
    """UploadService rooted in tmp_path with storage created."""
    service = UploadService(temp_root, output_root, TEST_RECOMMENDED_CHUNK_SIZE)
    service.ensure_storage()
    return service


@pytest.fixture
def server_app(temp_root, output_root):
    return create_app(
        temp_root=temp_root,
        output_root=output_root,
        recommended_chunk_size=TEST_RECOMMENDED_CHUNK_SIZE,
    )


@pytest.fixture
def api_client(server_app):
    """FastAPI TestClient with the app lifespan running."""
    with TestClient(server_app) as client:
        yield client
