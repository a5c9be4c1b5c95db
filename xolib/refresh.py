"""Refresh sources for the state-change waiter.

Each source performs exactly one lookup per call and returns a fresh
projection of the backup; nothing is cached between calls. Lookups are
single-attempt: transient failures reach the waiter, whose retry budget and
cancellable sleep are the only retry policy for a wait. A backup that is
not visible yet surfaces as ``NotFoundError``, which the waiter retries
within its budget.
"""

from __future__ import annotations

from typing import Dict, Iterable

from xolib.lookup import MatchStrategy, ObjectLookup
from xolib.waiter import RefreshFn


def power_state_source(lookup: ObjectLookup, backup_id: str) -> RefreshFn:
    def refresh() -> str:
        return lookup.get_backup(MatchStrategy.BY_ID, backup_id, retry=False).power_state

    return refresh


def address_source(lookup: ObjectLookup, backup_id: str) -> RefreshFn:
    def refresh() -> Dict[str, str]:
        return dict(lookup.get_backup(MatchStrategy.BY_ID, backup_id, retry=False).addresses)

    return refresh


def attributes_source(lookup: ObjectLookup, backup_id: str, keys: Iterable[str]) -> RefreshFn:
    """Project the given remote attribute keys, used to watch an update land."""
    keys = tuple(keys)

    def refresh() -> Dict[str, object]:
        observed = lookup.get_backup(MatchStrategy.BY_ID, backup_id, retry=False).to_dict()
        return {key: observed.get(key) for key in keys}

    return refresh
