"""Storage key derivation."""

from src.identity.mapper import derive_key, is_native_key

__all__ = [
    "derive_key",
    "is_native_key",
]
