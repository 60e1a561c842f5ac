"""Shared defaults for chunkup uploads.

These defaults are conservative for broad compatibility. For fast networks
and servers that accept concurrent chunk writes, consider raising
parallelism via CLI flags (e.g., --max-parallel 4 --chunk-size 16MiB).
"""

# =============================================================================
# Chunked Upload Defaults (conservative)
# =============================================================================

# Bytes per chunk
DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024

# Retries per chunk after the first attempt
DEFAULT_MAX_RETRIES = 2

# Fixed delay between attempts, in seconds
DEFAULT_RETRY_DELAY = 1.0

# Chunks allowed in flight at once
DEFAULT_MAX_PARALLEL = 1

# HTTP method used for every transfer
DEFAULT_METHOD = "POST"

# "single" or "chunked"
DEFAULT_MODE = "chunked"

# HTTP timeout per transfer, in seconds
DEFAULT_TIMEOUT = 300.0

# =============================================================================
# Payload Field Names
# =============================================================================

DEFAULT_CHUNK_FIELD = "chunk"
DEFAULT_FILE_NAME_FIELD = "fileName"
DEFAULT_CURRENT_CHUNK_FIELD = "currentChunk"
DEFAULT_TOTAL_CHUNK_FIELD = "totalChunk"

# Upper bound accepted for --max-parallel
MAX_PARALLEL_LIMIT = 64

# =============================================================================
# High-Throughput Recommendations (not defaults)
# =============================================================================
# For servers that reassemble out-of-order chunks:
#   --max-parallel 4-8
#   --chunk-size 8MiB-32MiB
#   --max-retries 5 --retry-delay 3
#
# These are NOT defaults to avoid overwhelming servers that expect sequential writes.
