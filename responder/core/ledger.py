from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass
class SeenEntry:
    req: str
    last_seen_at: float


class DedupLedger:
    """Recently accepted request ids; expired entries are pruned lazily, never on a timer."""

    def __init__(self, ttl: float, clock: Callable[[], float], max_entries: int = 256) -> None:
        self.ttl = ttl
        self.clock = clock
        self.max_entries = max_entries
        self._entries: Dict[str, SeenEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, req: object) -> bool:
        return isinstance(req, str) and self.seen(req)

    def prune(self) -> int:
        now = self.clock()
        expired = [req for req, entry in self._entries.items() if now - entry.last_seen_at > self.ttl]
        for req in expired:
            del self._entries[req]
        if expired:
            logger.debug("Pruned %s expired request ids", len(expired))
        return len(expired)

    def seen(self, req: str) -> bool:
        entry = self._entries.get(req)
        return entry is not None and self.clock() - entry.last_seen_at <= self.ttl

    def record(self, req: str) -> None:
        self._entries.pop(req, None)
        self._entries[req] = SeenEntry(req=req, last_seen_at=self.clock())
        if len(self._entries) <= self.max_entries:
            return
        self.prune()
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            age = self.clock() - self._entries.pop(oldest).last_seen_at
            logger.warning(
                "Dedup ledger full, evicted unexpired req=%s age=%.1fs ttl=%.1fs; a resend of it would run again",
                oldest,
                age,
                self.ttl,
            )


__all__ = ["SeenEntry", "DedupLedger"]
