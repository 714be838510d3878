"""
helpers.py - Test helpers shared across LedgerStore tests

- Account identities used by every suite
- EventRecorder: subscriber that keeps what it is handed
- snapshot(): capture every observable piece of store state
"""

from typing import Any, Dict, List

from ledgerstore import LedgerStore, EventRecord


OWNER = "0xOwner"
OTHER = "0xOther"
THIRD = "0xThird"


class EventRecorder:
    """Subscriber that keeps every record it is handed."""

    def __init__(self):
        self.records: List[EventRecord] = []

    def __call__(self, record: EventRecord) -> None:
        self.records.append(record)

    @property
    def events(self) -> List[Any]:
        return [r.event for r in self.records]

    @property
    def names(self) -> List[str]:
        return [r.name for r in self.records]


def snapshot(store: LedgerStore) -> Dict[str, Any]:
    """Capture every observable piece of store state."""
    return {
        "owner": store.owner,
        "value": store.get_value(),
        "balances": store.get_balances(),
        "log": store.event_log,
        "deposited": store.total_deposited(),
        "withdrawn": store.total_withdrawn(),
    }
