"""Utility helper functions for the upload server."""

import re
import secrets

SESSION_ID_BYTES = 16

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\[\]]')
_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')


def generate_session_id() -> str:
    """
    Generate a new opaque session identifier.

    Returns:
        32 hex characters (128 bits from the OS CSPRNG)
    """
    return secrets.token_hex(SESSION_ID_BYTES)


def sanitize_object_name(name: str) -> str:
    """
    Make an object name safe to use as a single file name.

    Path separators, reserved characters and every '..' sequence are replaced
    with '_', control characters are dropped.

    Args:
        name: Object name as sent by the client

    Returns:
        Sanitized file name, never empty
    """
    sanitized = _CONTROL_CHARS.sub('', name)
    sanitized = _UNSAFE_CHARS.sub('_', sanitized)
    sanitized = sanitized.replace('..', '_').strip()
    if sanitized in ('', '.'):
        return '_'
    return sanitized
