"""HTTP client for communicating with the upload server."""

import time
import uuid
from typing import Optional

import httpx

from common.constants import API_PREFIX, REQUEST_ID_HEADER
from common.logging_config import get_logger
from upload_client.config import Config
from upload_client.exceptions import (
    MissingChunkError,
    SessionNotFoundError,
    TransmissionError,
    UploadRejectedError,
)
from upload_client.types import FinalizeResult, UploadSessionInfo

logger = get_logger(__name__)


class UploadClient:
    """
    HTTP transport for the three upload calls plus session status.

    ``init_upload`` and ``get_session`` retry network failures and 5xx
    answers on their own. ``put_chunk`` and ``finalize`` make exactly one
    attempt and report failures as exceptions; chunk retries belong to the
    scheduler's retry policy.
    """

    def __init__(self, config: Config, session: Optional[httpx.Client] = None):
        """
        Initialize upload client.

        Args:
            config: Configuration instance
            session: Preconfigured httpx client (tests route it to the app)
        """
        self.config = config
        self.session = session or httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized UploadClient [base_url={self.session.base_url}]")

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, ...)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            TransmissionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        for attempt in range(max_retries + 1):
            try:
                response = self._send(method, endpoint, **kwargs)
            except httpx.TransportError as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )
                break

            if response.status_code >= 500 and attempt < max_retries:
                delay = backoff ** attempt
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                )
                time.sleep(delay)
                continue

            return response

        raise self._transport_error(last_exception)

    def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        self.request_id = str(uuid.uuid4())
        headers = dict(kwargs.pop('headers', None) or {})
        headers[REQUEST_ID_HEADER] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")
        response = self.session.request(method, endpoint, headers=headers, **kwargs)
        logger.debug(
            f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
        )
        return response

    def _send_once(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        try:
            return self._send(method, endpoint, **kwargs)
        except httpx.TransportError as e:
            raise self._transport_error(e) from e

    def _transport_error(self, error: Optional[Exception]) -> TransmissionError:
        if isinstance(error, httpx.ConnectError):
            return TransmissionError("Cannot connect to upload server. Is it running?")
        if isinstance(error, httpx.TimeoutException):
            return TransmissionError("Request timed out. Server may be overloaded.")
        if error is not None:
            return TransmissionError(f"Network error: {error}")
        return TransmissionError("Max retries exceeded")

    def _raise_for_error(self, response: httpx.Response) -> None:
        """
        Map an error response to the client exception taxonomy.

        Raises:
            TransmissionError: 5xx, or a chunk that arrived corrupted
            SessionNotFoundError: 404
            MissingChunkError: MISSING_CHUNK on finalize
            UploadRejectedError: Any other 4xx
        """
        if response.status_code < 400:
            return

        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            error_data = {}
            detail = response.text or 'Unknown error'
            code = 'UNKNOWN'

        if not isinstance(detail, str):
            detail = str(detail)

        logger.warning(
            f"Request failed: status={response.status_code} code={code} detail={detail} [request_id={self.request_id}]"
        )

        if response.status_code >= 500:
            raise TransmissionError(f"Server error {response.status_code}: {detail}")
        if code == 'CHECKSUM_MISMATCH':
            raise TransmissionError(f"Chunk corrupted in transit: {detail}")
        if response.status_code == 404:
            raise SessionNotFoundError(detail)
        if code == 'MISSING_CHUNK':
            raise MissingChunkError(int(error_data.get('chunk_index', -1)), detail)
        raise UploadRejectedError(detail, code=code, status_code=response.status_code)

    def init_upload(self, object_name: str, declared_size: int, mime_type: str) -> UploadSessionInfo:
        """
        Open an upload session on the server.

        Returns:
            UploadSessionInfo with the session id and recommended chunk size
        """
        response = self._request_with_retry(
            'POST',
            f'{API_PREFIX}/init',
            json={
                'object_name': object_name,
                'declared_size': declared_size,
                'mime_type': mime_type,
            }
        )
        self._raise_for_error(response)

        data = response.json()
        info = UploadSessionInfo(
            session_id=data['session_id'],
            recommended_chunk_size=data.get('recommended_chunk_size'),
            already_received_indices=tuple(data.get('already_received_indices') or ()),
        )
        logger.info(
            f"Opened session {info.session_id} for '{object_name}' "
            f"[recommended_chunk_size={info.recommended_chunk_size}]"
        )
        return info

    def put_chunk(
        self,
        session_id: str,
        chunk_index: int,
        data: bytes,
        checksum: Optional[str] = None,
    ) -> int:
        """
        Send one chunk.

        Returns:
            Byte length acknowledged by the server
        """
        form = {'chunk_index': str(chunk_index)}
        if checksum:
            form['checksum'] = checksum

        response = self._send_once(
            'POST',
            f'{API_PREFIX}/{session_id}/chunk',
            files={'chunk': (f'part_{chunk_index}', data, 'application/octet-stream')},
            data=form,
        )
        self._raise_for_error(response)
        return response.json()['byte_length']

    def finalize(self, session_id: str, total_chunks: int, object_name: str) -> FinalizeResult:
        """
        Ask the server to assemble the object.

        Returns:
            FinalizeResult with the final path on the server
        """
        response = self._send_once(
            'POST',
            f'{API_PREFIX}/{session_id}/complete',
            json={'total_chunks': total_chunks, 'object_name': object_name},
        )
        self._raise_for_error(response)

        data = response.json()
        return FinalizeResult(
            final_path=data['final_path'],
            original_name=data['original_name'],
            sanitized_name=data['sanitized_name'],
            size=data['size'],
            checksum=data.get('checksum'),
        )

    def get_session(self, session_id: str) -> dict:
        """Fetch the server's view of a live session."""
        response = self._request_with_retry('GET', f'{API_PREFIX}/{session_id}')
        self._raise_for_error(response)
        return response.json()

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
