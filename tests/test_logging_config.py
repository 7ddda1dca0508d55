"""Tests for logging setup and session id shortening."""

import logging

from common.logging_config import SessionIdFilter, setup_logging

SESSION_ID = '0123456789abcdef0123456789abcdef'


def make_record(msg, args=()):
    return logging.LogRecord('test', logging.INFO, __file__, 1, msg, args, None)


def test_filter_shortens_session_id_in_message():
    record = make_record(f'Chunk 3 stored for session {SESSION_ID}')

    assert SessionIdFilter().filter(record) is True
    assert record.getMessage() == 'Chunk 3 stored for session 01234567…'


def test_filter_shortens_session_id_in_args():
    record = make_record('session %s chunk %d', (SESSION_ID, 4))

    SessionIdFilter().filter(record)

    assert record.getMessage() == 'session 01234567… chunk 4'


def test_filter_leaves_other_hex_alone():
    digest = 'ab' * 32
    record = make_record(f'checksum {digest}')

    SessionIdFilter().filter(record)

    assert record.getMessage() == f'checksum {digest}'


def test_setup_logging_is_idempotent():
    first = setup_logging('chunkup_test_component', 'DEBUG')
    second = setup_logging('chunkup_test_component', 'DEBUG')

    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG
    assert second.propagate is False
