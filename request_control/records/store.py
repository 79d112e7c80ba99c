"""
Per-tab record store for request-control.

Keeps, per tab, the ordered (oldest to newest) records of rules applied to
that tab's requests.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from request_control.models import Record

logger = logging.getLogger(__name__)


class _TabRecords:
    """Record sequence of one tab with its key index."""

    __slots__ = ("records", "keys")

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self.records: list[Record] = []
        self.keys: set[tuple] = set()
        for record in records:
            self.add(record)

    def add(self, record: Record) -> bool:
        if record.key in self.keys:
            return False
        self.keys.add(record.key)
        self.records.append(record)
        return True


class RecordStore:
    """Mapping of tab id to that tab's record sequence.

    Sequences are created lazily on the first record and never hold two
    records with the same ``(url, target, timestamp)``. The store holds no
    policy; pruning is the reconciler's job.

    Example:
        store = RecordStore()
        count = store.append(record)
        records = store.get(record.tab_id)
    """

    def __init__(self) -> None:
        self._tabs: dict[int, _TabRecords] = {}

    def append(self, record: Record) -> int:
        """Append a record to its tab's sequence.

        Args:
            record: Record to add.

        Returns:
            Length of the tab's sequence after the append. A duplicate record
            is dropped and the unchanged length returned.
        """
        tab = self._tabs.get(record.tab_id)
        if tab is None:
            tab = self._tabs[record.tab_id] = _TabRecords()
        if not tab.add(record):
            logger.debug(f"Dropping duplicate record for tab {record.tab_id}: {record.url}")
        return len(tab.records)

    def get(self, tab_id: int) -> Optional[list[Record]]:
        """Get a copy of a tab's records, or None if the tab has none."""
        tab = self._tabs.get(tab_id)
        if tab is None:
            return None
        return list(tab.records)

    def replace(self, tab_id: int, records: Iterable[Record]) -> None:
        """Replace a tab's sequence wholesale."""
        self._tabs[tab_id] = _TabRecords(records)

    def remove(self, tab_id: int) -> None:
        """Delete a tab's sequence. Unknown tabs are ignored."""
        self._tabs.pop(tab_id, None)

    def has(self, tab_id: int) -> bool:
        return tab_id in self._tabs

    def count(self, tab_id: int) -> int:
        tab = self._tabs.get(tab_id)
        return len(tab.records) if tab else 0

    def clear(self) -> None:
        """Drop every tab's records."""
        self._tabs.clear()

    def snapshot(self) -> dict[int, list[Record]]:
        """Copy of all sequences keyed by tab id."""
        return {tab_id: list(tab.records) for tab_id, tab in self._tabs.items()}

    def tab_ids(self) -> list[int]:
        return list(self._tabs)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._tabs

    def __len__(self) -> int:
        return len(self._tabs)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._tabs))
