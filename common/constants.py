"""Project-wide constants (size units, chunking defaults, wire headers)."""

KIB: int = 1024
MIB: int = 1024 * KIB
GIB: int = 1024 * MIB

DEFAULT_RECOMMENDED_CHUNK_SIZE: int = 10 * MIB

DEFAULT_TEMP_ROOT: str = "./tmp_uploads"
DEFAULT_OUTPUT_ROOT: str = "./uploads"

DEFAULT_SERVER_PORT: int = 3000

STREAM_PIECE_SIZE_BYTES: int = 64 * KIB

REQUEST_ID_HEADER: str = "X-Request-ID"

API_PREFIX: str = "/api/uploads"
