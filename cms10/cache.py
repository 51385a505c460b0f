"""
Format-Detection Cache

Memoises ``detect_episodes_format`` per episode-set content with strict LRU
eviction.  Instances are injected where needed; there is no module-level
singleton.
"""

import copy
import json
import logging
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import replace
from threading import Lock
from typing import Any, Dict, Optional

from cms10.episode_detector import detect_episodes_format
from cms10.models import FormatDetectionResult

logger = logging.getLogger(__name__)


class FormatDetectionCache:
    """Bounded LRU cache of ``FormatDetectionResult`` keyed by episode content."""

    def __init__(self, capacity: int = 100):
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ValueError(f'capacity must be a positive int, got {capacity!r}')
        self.capacity = capacity
        self._entries: 'OrderedDict[str, FormatDetectionResult]' = OrderedDict()
        self.lock = Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @staticmethod
    def generate_key(episodes: Mapping) -> str:
        """Canonical key: ``(label, token)`` pairs sorted by label."""
        entries = sorted(episodes.items(), key=lambda item: str(item[0]))
        return json.dumps(entries, ensure_ascii=False, default=str)

    def get(self, episodes: Mapping) -> Optional[FormatDetectionResult]:
        """Private copy of the cached result; edits to it never reach the cache."""
        key = self.generate_key(episodes)
        with self.lock:
            result = self._entries.get(key)
            if result is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return copy.deepcopy(result)

    def set(self, episodes: Mapping, result: FormatDetectionResult) -> None:
        key = self.generate_key(episodes)
        with self.lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("Evicted format detection entry (%d chars)", len(evicted))
            self._entries[key] = copy.deepcopy(result)

    def detect(self, episodes: Any) -> FormatDetectionResult:
        """Cached ``detect_episodes_format``; the copy returned carries
        ``from_cache`` so callers can tell the two paths apart."""
        if not isinstance(episodes, Mapping):
            return detect_episodes_format(episodes)

        cached = self.get(episodes)
        if cached is not None:
            logger.debug("Format detection cache hit")
            return replace(cached, from_cache=True)

        result = detect_episodes_format(episodes)
        self.set(episodes, result)
        return replace(result, from_cache=False)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
            self.evictions = 0

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)

    def __contains__(self, episodes) -> bool:
        key = self.generate_key(episodes)
        with self.lock:
            return key in self._entries

    def get_statistics(self) -> Dict:
        with self.lock:
            return {
                'size': len(self._entries),
                'max_size': self.capacity,
                'hits': self.hits,
                'misses': self.misses,
                'evictions': self.evictions,
            }
