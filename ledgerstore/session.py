"""
session.py - Caller-Bound Store Handle

A StoreSession fixes the calling account once so that every operation is
invoked on its behalf:

    alice = store.connect("alice")
    alice.deposit(Decimal("2.0"))
    alice.withdraw(Decimal("0.1"))     # raises Unauthorized unless alice owns the store
"""

from __future__ import annotations
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from .core import Account, EventRecord

if TYPE_CHECKING:
    from .store import LedgerStore


class StoreSession:
    """
    Handle that calls a LedgerStore as one account.

    Holds no state of its own; every read goes to the store. Implements
    the StoreView protocol.
    """

    __slots__ = ("store", "caller")

    def __init__(self, store: LedgerStore, caller: Account):
        self.store = store
        self.caller = caller

    @property
    def owner(self) -> Account:
        return self.store.owner

    @property
    def is_owner(self) -> bool:
        return self.store.is_owner(self.caller)

    def connect(self, caller: Account) -> StoreSession:
        """Return a session on the same store for another account."""
        return self.store.connect(caller)

    def set_value(self, new_value: int) -> EventRecord:
        return self.store.set_value(self.caller, new_value)

    def deposit(self, amount: Any) -> EventRecord:
        return self.store.deposit(self.caller, amount)

    def withdraw(self, amount: Any) -> EventRecord:
        return self.store.withdraw(self.caller, amount)

    def get_value(self) -> int:
        return self.store.get_value()

    def get_balance(self, account: Optional[Account] = None) -> Decimal:
        """Balance of ``account``, or of the session's caller when omitted."""
        return self.store.get_balance(self.caller if account is None else account)

    def __repr__(self) -> str:
        return f"StoreSession({self.store.name!r} as {self.caller!r})"
