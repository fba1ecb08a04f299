from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityCache:
    """Process-wide read-through cache keyed by entity type.

    Services read through ``get_or_load`` and call ``invalidate`` for the
    entity type they just wrote. There is no expiry: a write is the only
    thing that evicts.

    Each entity type carries a generation number that ``invalidate`` bumps.
    A load that started before an invalidation is returned to its caller but
    not stored.
    """

    def __init__(self, *, enabled: bool = True):
        self._enabled = enabled
        self._entries: Dict[str, Dict[Tuple[Hashable, ...], Any]] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.RLock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def get_or_load(self, entity_type: str, key: Tuple[Hashable, ...], loader: Callable[[], T]) -> T:
        if not self._enabled:
            return loader()

        with self._lock:
            bucket = self._entries.get(entity_type)
            if bucket is not None and key in bucket:
                return bucket[key]
            generation = self._generations.get(entity_type, 0)

        value = loader()
        with self._lock:
            if self._generations.get(entity_type, 0) == generation:
                self._entries.setdefault(entity_type, {})[key] = value
            else:
                logger.debug("cache load discarded: %s changed while loading", entity_type)
        return value

    def invalidate(self, *entity_types: str) -> None:
        with self._lock:
            for entity_type in entity_types:
                self._generations[entity_type] = self._generations.get(entity_type, 0) + 1
                dropped = self._entries.pop(entity_type, None)
                if dropped:
                    logger.debug("cache invalidated: %s (%d keys)", entity_type, len(dropped))
