"""
Redirect-chain reconciliation for request-control.

On every top-level navigation commit the tab's records are cut down to the
redirect chain that led to the committed URL. The walk looks back a fixed
number of records in each of its two passes, so its cost does not grow with
the tab's history. Chains deeper than the window lose their oldest hops.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from request_control.models import NavigationDetails, Record

if TYPE_CHECKING:
    from request_control.notifier import Notifier
    from request_control.records.store import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = 5


def reconcile_chain(
    records: Sequence[Record],
    url: str,
    is_server_redirect: bool = False,
    lookback: int = DEFAULT_LOOKBACK,
) -> list[Record]:
    """Find the redirect chain ending at a committed URL.

    Pass 1 scans at most ``lookback`` records, newest first, for the anchor:
    the first record redirecting to ``url``, or, on a server redirect, the
    first record redirecting anywhere. Pass 2 scans at most ``lookback``
    further records and keeps each one that redirected to the URL of the
    hop after it.

    Args:
        records: Tab records, oldest first. Not modified.
        url: Committed URL.
        is_server_redirect: Whether the commit came from a server redirect.
        lookback: Records inspected per pass.

    Returns:
        The chain, oldest first, or an empty list when no anchor is found.
    """
    index = len(records) - 1
    stop = max(index - lookback, -1)

    anchor = None
    while index > stop:
        record = records[index]
        index -= 1
        if record.target == url or (is_server_redirect and record.target):
            anchor = record
            break

    if anchor is None:
        return []

    keep = [anchor]
    last = anchor
    stop = max(index - lookback, -1)
    while index > stop:
        record = records[index]
        index -= 1
        if record.target and record.target == last.url:
            keep.append(record)
            last = record

    keep.reverse()
    return keep


class RedirectChainReconciler:
    """Prunes a tab's records on navigation commit.

    Example:
        reconciler = RedirectChainReconciler(store, notifier)
        reconciler.on_committed(NavigationDetails(tab_id=1, url="https://b/"))
    """

    def __init__(
        self,
        store: "RecordStore",
        notifier: "Notifier",
        lookback: int = DEFAULT_LOOKBACK,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._lookback = lookback

    @property
    def lookback(self) -> int:
        return self._lookback

    def on_committed(self, details: NavigationDetails) -> list[Record]:
        """Reconcile the committing tab's records.

        Sub-frame commits and tabs without records are ignored.

        Returns:
            Records kept for the tab.
        """
        if not details.is_top_level:
            return []

        records = self._store.get(details.tab_id)
        if records is None:
            return []

        keep = reconcile_chain(
            records,
            details.url,
            details.is_server_redirect,
            self._lookback,
        )

        if keep:
            self._store.replace(details.tab_id, keep)
            logger.debug(
                f"Tab {details.tab_id} committed {details.url}: "
                f"kept {len(keep)} of {len(records)} records"
            )
            self._notifier.notify(details.tab_id, keep[-1].rule, len(keep))
        else:
            self._store.remove(details.tab_id)
            logger.debug(f"Tab {details.tab_id} committed {details.url}: no chain, records cleared")
            self._notifier.clear(details.tab_id)
        return keep
