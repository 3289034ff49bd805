from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class StatusSurface(Protocol):
    """User-visible boolean indicators (valve open, link reachable)."""

    def set_indicator(self, indicator_id: int, value: bool) -> None: ...


class IndicatorPanel:
    """In-memory status surface that logs every change."""

    def __init__(self, labels: Optional[Dict[int, str]] = None, history_size: int = 256) -> None:
        self.labels = labels or {}
        self._values: Dict[int, bool] = {}
        self.history: Deque[Tuple[int, bool]] = deque(maxlen=history_size)

    def set_indicator(self, indicator_id: int, value: bool) -> None:
        self._values[indicator_id] = bool(value)
        self.history.append((indicator_id, bool(value)))
        logger.info("Indicator %s (%s) = %s", indicator_id, self.labels.get(indicator_id, "-"), bool(value))

    def get(self, indicator_id: int) -> Optional[bool]:
        return self._values.get(indicator_id)

    def snapshot(self) -> Dict[str, Optional[bool]]:
        return {self.labels.get(key, str(key)): value for key, value in self._values.items()}


__all__ = ["StatusSurface", "IndicatorPanel"]
