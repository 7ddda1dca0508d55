"""Configuration settings for the upload server."""

import os
from common.constants import (
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_RECOMMENDED_CHUNK_SIZE,
    DEFAULT_SERVER_PORT,
    DEFAULT_TEMP_ROOT,
)


TEMP_ROOT = os.environ.get("UPLOAD_TEMP_ROOT", DEFAULT_TEMP_ROOT)

OUTPUT_ROOT = os.environ.get("UPLOAD_OUTPUT_ROOT", DEFAULT_OUTPUT_ROOT)

SERVER_HOST = os.environ.get("UPLOAD_SERVER_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("UPLOAD_SERVER_PORT", str(DEFAULT_SERVER_PORT)))

RECOMMENDED_CHUNK_SIZE = int(
    os.environ.get("UPLOAD_RECOMMENDED_CHUNK_SIZE", str(DEFAULT_RECOMMENDED_CHUNK_SIZE))
)
