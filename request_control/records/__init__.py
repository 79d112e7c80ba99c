"""
Tab record history for request-control.

- RecordStore: per-tab record sequences
- reconcile_chain: bounded backward walk finding a committed URL's redirect chain
- RedirectChainReconciler: applies reconcile_chain on navigation commits
"""

from request_control.records.chain import (
    DEFAULT_LOOKBACK,
    RedirectChainReconciler,
    reconcile_chain,
)
from request_control.records.store import RecordStore

__all__ = [
    "DEFAULT_LOOKBACK",
    "RecordStore",
    "RedirectChainReconciler",
    "reconcile_chain",
]
