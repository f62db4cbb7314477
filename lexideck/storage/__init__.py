"""Storage package for lexideck.

Key-value stores hold one JSON snapshot per key. The deck manager only
depends on the KeyValueStore interface.
"""

from .store import DuckDBKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = ["KeyValueStore", "MemoryKeyValueStore", "DuckDBKeyValueStore"]
