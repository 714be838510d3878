"""
ledgerstore - Owner-Administered Value Store

A single-owner value store with a per-account balance ledger and event
notifications.

Usage:
    from ledgerstore import LedgerStore, Deposited

    store = LedgerStore("owner", verbose=False)
    store.subscribe(Deposited, lambda record: print(record))

    store.deposit("owner", "1.0")
    store.withdraw("owner", "0.4")
    store.get_balance("owner")          # Decimal("0.6")

    alice = store.connect("alice")
    alice.deposit("2.0")
    alice.withdraw("0.1")               # raises Unauthorized
"""

# Core types
from .core import (
    StoreView,
    Account,
    BalanceMap,
    ValueChanged,
    Deposited,
    Withdrawn,
    EventRecord,
    EVENT_TYPES,
    LedgerStoreError,
    SubscriberError,
    Unauthorized,
    InvalidAmount,
    InsufficientBalance,
    MSG_UNAUTHORIZED,
    MSG_INVALID_AMOUNT,
    MSG_INSUFFICIENT_BALANCE,
    ZERO,
    to_amount,
    filter_events,
    event_type_by_name,
)

# Events
from .events import EventBus, EventHandler

# Store
from .store import LedgerStore
from .session import StoreSession

__all__ = [
    # Core
    'StoreView', 'Account', 'BalanceMap',
    'ValueChanged', 'Deposited', 'Withdrawn', 'EventRecord', 'EVENT_TYPES',
    'LedgerStoreError', 'Unauthorized', 'InvalidAmount', 'InsufficientBalance', 'SubscriberError',
    'MSG_UNAUTHORIZED', 'MSG_INVALID_AMOUNT', 'MSG_INSUFFICIENT_BALANCE',
    'ZERO', 'to_amount', 'filter_events', 'event_type_by_name',
    # Events
    'EventBus', 'EventHandler',
    # Store
    'LedgerStore', 'StoreSession',
]

__version__ = '1.0.0'
