"""Bounded in-memory dedup cache of already-seen transactions.

Keys are ``<entity id>:<tx hash>`` in one namespace per entity kind.
When the total number of keys exceeds the cap, every namespace is
cleared and only the key that overflowed it is kept. A clear can make
the detector re-process recent transactions; the event store's
uniqueness check absorbs those duplicates.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000


class DedupCache:
    """Process-local set of ``entity:tx`` keys with a hard size cap.

    Each ``ChangeDetector`` owns its own instance.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        namespaces: tuple[str, ...] = ("address", "contract"),
    ) -> None:
        """Initialize the cache.

        Args:
            max_size: Maximum number of keys across all namespaces.
            namespaces: Names of the key spaces (one per entity kind).
        """
        if max_size < 1:
            msg = "max_size must be at least 1"
            raise ValueError(msg)
        self._max_size = max_size
        self._keys: dict[str, set[str]] = {ns: set() for ns in namespaces}
        self._resets = 0

    @staticmethod
    def make_key(entity_id: str, tx_hash: str) -> str:
        return f"{entity_id}:{tx_hash}"

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def resets(self) -> int:
        """How many times the cache has been cleared for exceeding its cap."""
        return self._resets

    def __len__(self) -> int:
        return sum(len(keys) for keys in self._keys.values())

    def contains(self, namespace: str, entity_id: str, tx_hash: str) -> bool:
        return self.make_key(entity_id, tx_hash) in self._namespace(namespace)

    def add(self, namespace: str, entity_id: str, tx_hash: str) -> bool:
        """Record a key as seen.

        Returns:
            True if adding the key overflowed the cap and the cache was reset.
        """
        key = self.make_key(entity_id, tx_hash)
        self._namespace(namespace).add(key)
        if len(self) <= self._max_size:
            return False

        logger.info("Transaction dedup cache exceeded %d keys, clearing", self._max_size)
        self.clear()
        self._resets += 1
        self._keys[namespace].add(key)
        return True

    def discard(self, namespace: str, entity_id: str, tx_hash: str) -> None:
        """Forget a key so the transaction is picked up again on the next poll."""
        self._namespace(namespace).discard(self.make_key(entity_id, tx_hash))

    def clear(self) -> None:
        """Drop every key in every namespace."""
        for keys in self._keys.values():
            keys.clear()

    def _namespace(self, namespace: str) -> set[str]:
        try:
            return self._keys[namespace]
        except KeyError:
            msg = f"unknown dedup namespace: {namespace!r}"
            raise KeyError(msg) from None
