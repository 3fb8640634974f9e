"""Map caller identifiers onto the vector store's native key space.

Qdrant only accepts unsigned integers or UUIDs as point ids. Arbitrary
caller ids are hashed into a UUID so the same id always lands on the same
point without a lookup table. The original id travels in the payload so
records can be resolved back to it.
"""

import hashlib
import re
from uuid import UUID, uuid4

_NATIVE_KEY_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_native_key(value: str) -> bool:
    """Return True if ``value`` is already a canonical RFC 4122 UUID string."""
    return bool(_NATIVE_KEY_PATTERN.match(value))


def derive_key(record_id: str | None = None) -> str:
    """Derive the storage key for a record id.

    Args:
        record_id: Caller-supplied identifier, or None for a fresh key.

    Returns:
        A UUID string. Native keys pass through unchanged; any other id is
        hashed with SHA-256 and the first 16 bytes are stamped with the
        version 4 and RFC 4122 variant bits.
    """
    if not record_id:
        return str(uuid4())

    if is_native_key(record_id):
        return record_id

    digest = hashlib.sha256(record_id.encode("utf-8")).digest()
    return str(UUID(bytes=digest[:16], version=4))
