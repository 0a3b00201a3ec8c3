from collections import OrderedDict
from dataclasses import dataclass, field

from docstore.core.models import CacheEntry


@dataclass
class DocCache:
    """In-process map from document identifier to its last loaded entry.

    max_entries > 0 bounds the cache, evicting the least recently used entry.
    """
    max_entries: int = 0
    hits: int = 0
    misses: int = 0
    _entries: OrderedDict[str, CacheEntry] = field(default_factory=OrderedDict)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._entries

    def get(self, doc_id: str) -> CacheEntry | None:
        entry = self._entries.get(doc_id)
        if entry is None:
            self.misses += 1
            return None
        self._entries.move_to_end(doc_id)
        self.hits += 1
        return entry

    def put(self, doc_id: str, entry: CacheEntry) -> None:
        self._entries[doc_id] = entry
        self._entries.move_to_end(doc_id)
        if self.max_entries > 0:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, doc_id: str) -> bool:
        return self._entries.pop(doc_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()
