"""
store.py - Owner-Administered Value Store with Balance Ledger

The LedgerStore class is the only module that mutates state, ensuring
controlled and auditable changes.

Key responsibilities:
    - Implements the StoreView protocol for read-only access
    - Gates privileged operations on a single immutable owner identity
    - Credits and debits per-account balances, never below zero
    - Emits exactly one event per successful mutation and logs it
    - Rebuilds historical state from the event log (replay)
"""

from __future__ import annotations
from decimal import Decimal
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple, Type
import threading

from .core import (
    # Types
    Account, BalanceMap, EventRecord, StoreEvent,
    ValueChanged, Deposited, Withdrawn,
    # Constants
    ZERO,
    # Exceptions
    LedgerStoreError, Unauthorized, InvalidAmount, InsufficientBalance, SubscriberError,
    # Helper functions
    to_amount, checked_add, checked_sub, filter_events,
)
from .events import EventBus, EventHandler
from .session import StoreSession


class LedgerStore:
    """
    Single-owner value store with a per-account balance ledger.

    Implements the StoreView protocol. The account passed as ``deployer``
    becomes the owner for the lifetime of the store.

    Design Principles:
        - Guards first: every precondition is checked before any state
          changes. A failed guard leaves state, log and subscribers untouched.
        - Always logs: every successful mutation appends one EventRecord,
          enabling replay() for historical state reconstruction.

    Thread Safety:
        All operations serialize on a re-entrant lock. Subscribers are
        notified while the lock is held, so they see events in log order
        and may read the store from their own thread. A subscriber that
        mutates the store has its event delivered after the current one.

    Subscriber Failures:
        Every subscriber receives every event. If any handler raises, the
        mutating call raises SubscriberError once delivery is done; the
        mutation itself stays committed and logged.

    Example:
        store = LedgerStore("owner")
        store.deposit("owner", Decimal("1.0"))
        store.withdraw("owner", Decimal("0.4"))
        store.get_balance("owner")      # Decimal("0.6")
    """

    def __init__(self, deployer: Account, name: str = "store", verbose: bool = True):
        """
        Deploy a store.

        Args:
            deployer: Account constructing the store; becomes the owner
            name: Store identifier used in diagnostics (default: "store")
            verbose: Print one line per applied or rejected call (default: True)

        Raises:
            ValueError: If deployer is not a non-empty string
        """
        self._check_account(deployer, "deployer")
        self.name = name
        self.verbose = verbose
        self._owner: Account = deployer
        self._value: int = 0
        self._balances: BalanceMap = {}
        self._total_deposited: Decimal = ZERO
        self._total_withdrawn: Decimal = ZERO
        self._event_log: List[EventRecord] = []
        self._next_sequence: int = 0
        self._bus = EventBus()
        self._pending: Deque[EventRecord] = deque()
        self._delivering = False
        self._lock = threading.RLock()

    # ========================================================================
    # StoreView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def owner(self) -> Account:
        """The account that deployed the store. Never changes."""
        return self._owner

    @property
    def value(self) -> int:
        return self.get_value()

    def get_value(self) -> int:
        """Current configuration value (0 until the owner sets it)."""
        with self._lock:
            return self._value

    def get_balance(self, account: Account) -> Decimal:
        """
        Get the balance of an account.

        Returns:
            Current balance (Decimal("0") if the account never deposited)
        """
        with self._lock:
            return self._balances.get(account, ZERO)

    def is_owner(self, account: Account) -> bool:
        return account == self._owner

    def list_accounts(self) -> List[Account]:
        """Accounts that have a ledger entry, sorted."""
        with self._lock:
            return sorted(self._balances)

    def get_balances(self) -> BalanceMap:
        """Snapshot of every ledger entry."""
        with self._lock:
            return dict(self._balances)

    def total_deposited(self) -> Decimal:
        with self._lock:
            return self._total_deposited

    def total_withdrawn(self) -> Decimal:
        with self._lock:
            return self._total_withdrawn

    def total_balance(self) -> Decimal:
        """
        Sum of all balances.

        Accounts are sorted before summation to ensure deterministic
        accumulation order.
        """
        with self._lock:
            total = ZERO
            for account in sorted(self._balances):
                total = checked_add(total, self._balances[account])
            return total

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that the ledger holds exactly what was deposited minus what
        was withdrawn, and that no entry is negative.

        Returns:
            Dict with keys:
            - 'valid': bool - True if both invariants hold
            - 'total_balance': Decimal - Sum of all ledger entries
            - 'expected': Decimal - total_deposited - total_withdrawn
            - 'discrepancy': Decimal - total_balance - expected
            - 'negative_accounts': List[str] - Accounts below zero

        Example:
            result = store.verify_conservation()
            assert result['valid'], f"Conservation violated: {result}"
        """
        with self._lock:
            total = self.total_balance()
            expected = checked_sub(self._total_deposited, self._total_withdrawn)
            negative = sorted(a for a, bal in self._balances.items() if bal < ZERO)
            discrepancy = checked_sub(total, expected)
            return {
                'valid': discrepancy == ZERO and not negative,
                'total_balance': total,
                'expected': expected,
                'discrepancy': discrepancy,
                'negative_accounts': negative,
            }

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def set_value(self, caller: Account, new_value: int) -> EventRecord:
        """
        Replace the configuration value. Owner only.

        Emits ValueChanged(old_value, new_value), even if the value is unchanged.

        Raises:
            Unauthorized: If caller is not the owner
            TypeError: If new_value is not an int
        """
        with self._lock:
            self._check_account(caller, "caller")
            if caller != self._owner:
                raise self._rejected("set_value", caller, Unauthorized(caller, "set_value"))
            if isinstance(new_value, bool) or not isinstance(new_value, int):
                raise TypeError(f"Value must be int, got {type(new_value).__name__}")

            old_value = self._value
            self._value = new_value
            return self._emit(caller, ValueChanged(old_value, new_value))

    def deposit(self, caller: Account, amount: Any) -> EventRecord:
        """
        Credit the caller's own balance with the amount sent alongside the call.

        Any account may deposit; there is no cap.

        Raises:
            InvalidAmount: If amount is not a positive finite number
        """
        with self._lock:
            self._check_account(caller, "caller")
            try:
                quantity = to_amount(amount)
                if quantity <= ZERO:
                    raise InvalidAmount(amount)
                new_balance = checked_add(self._balances.get(caller, ZERO), quantity)
                new_total = checked_add(self._total_deposited, quantity)
            except InvalidAmount as e:
                raise self._rejected("deposit", caller, e) from None

            self._balances[caller] = new_balance
            self._total_deposited = new_total
            return self._emit(caller, Deposited(caller, quantity))

    def withdraw(self, caller: Account, amount: Any) -> EventRecord:
        """
        Debit the owner's own balance. Owner only.

        Checks run in order: authorization, amount validity, balance.
        A zero withdrawal is allowed and still emits Withdrawn.

        Raises:
            Unauthorized: If caller is not the owner
            InvalidAmount: If amount is negative, non-finite or not a number
            InsufficientBalance: If amount exceeds the owner's balance
        """
        with self._lock:
            self._check_account(caller, "caller")
            if caller != self._owner:
                raise self._rejected("withdraw", caller, Unauthorized(caller, "withdraw"))
            try:
                quantity = to_amount(amount)
                if quantity < ZERO:
                    raise InvalidAmount(amount, "Withdrawal amount cannot be negative")
            except InvalidAmount as e:
                raise self._rejected("withdraw", caller, e) from None

            available = self._balances.get(caller, ZERO)
            if quantity > available:
                raise self._rejected(
                    "withdraw", caller, InsufficientBalance(caller, quantity, available)
                )
            try:
                new_balance = checked_sub(available, quantity)
                new_total = checked_add(self._total_withdrawn, quantity)
            except InvalidAmount as e:
                raise self._rejected("withdraw", caller, e) from None

            self._balances[caller] = new_balance
            self._total_withdrawn = new_total
            return self._emit(caller, Withdrawn(caller, quantity))

    @staticmethod
    def _check_account(account: Account, role: str) -> None:
        if not isinstance(account, str) or not account.strip():
            raise ValueError(f"Store {role} must be a non-empty account id, got {account!r}")

    def _emit(self, caller: Account, event: StoreEvent) -> EventRecord:
        """
        Log an event for a committed mutation and notify subscribers.

        A mutation made by a subscriber from inside delivery only queues its
        record; the outermost call delivers the queue in log order.
        """
        record = EventRecord(self._next_sequence, caller, event)
        self._next_sequence += 1
        self._event_log.append(record)
        if self.verbose:
            print(f"✓ APPLIED [{self.name}] {record!r}")
        self._pending.append(record)
        if not self._delivering:
            self._deliver_pending()
        return record

    def _deliver_pending(self) -> None:
        failures: List[Tuple[EventRecord, Exception]] = []
        self._delivering = True
        try:
            while self._pending:
                pending = self._pending.popleft()
                try:
                    self._bus.publish(pending)
                except SubscriberError as e:
                    failures.extend(e.failures)
        finally:
            self._delivering = False
            self._pending.clear()
        if failures:
            if self.verbose:
                print(f"✗ SUBSCRIBER FAILED [{self.name}] {len(failures)} handler call(s)")
            raise SubscriberError(failures) from failures[0][1]

    def _rejected(self, operation: str, caller: Account, error: LedgerStoreError) -> LedgerStoreError:
        if self.verbose:
            print(f"✗ REJECTED [{self.name}] {operation} by {caller}: {error}")
        return error

    # ========================================================================
    # EVENTS
    # ========================================================================

    def subscribe(self, event_type: Type | str | None, handler: EventHandler) -> EventHandler:
        """
        Register a handler for ValueChanged, Deposited, Withdrawn (class or
        name), or None for all events. Only future events are delivered.
        """
        with self._lock:
            return self._bus.subscribe(event_type, handler)

    def unsubscribe(self, event_type: Type | str | None, handler: EventHandler) -> None:
        with self._lock:
            self._bus.unsubscribe(event_type, handler)

    @property
    def event_log(self) -> List[EventRecord]:
        """Copy of the audit trail, oldest first."""
        with self._lock:
            return list(self._event_log)

    def get_events(self, event_type: Type | str | None = None, **field_values: Any) -> List[EventRecord]:
        """
        Query the event log.

        Example:
            store.get_events(Deposited, account="alice")
            store.get_events("ValueChanged", new_value=100)
        """
        with self._lock:
            return filter_events(self._event_log, event_type, **field_values)

    # ========================================================================
    # SESSIONS
    # ========================================================================

    def connect(self, caller: Account) -> StoreSession:
        """Return a handle that invokes this store as ``caller``."""
        self._check_account(caller, "caller")
        return StoreSession(self, caller)

    # ========================================================================
    # STORE OPERATIONS
    # ========================================================================

    def clone(self) -> LedgerStore:
        """
        Create an independent copy of this store.

        Cloned state includes owner, value, balances, totals and event log.
        Subscribers are not copied.
        """
        with self._lock:
            cloned = LedgerStore.__new__(LedgerStore)
            cloned.name = self.name
            cloned.verbose = self.verbose
            cloned._owner = self._owner
            cloned._value = self._value
            cloned._balances = dict(self._balances)
            cloned._total_deposited = self._total_deposited
            cloned._total_withdrawn = self._total_withdrawn
            cloned._event_log = list(self._event_log)
            cloned._next_sequence = self._next_sequence
            cloned._bus = EventBus()
            cloned._pending = deque()
            cloned._delivering = False
            cloned._lock = threading.RLock()
            return cloned

    def replay(self, upto: Optional[int] = None) -> LedgerStore:
        """
        Create a new store by re-applying the event log.

        Every logged event is re-executed as the call that produced it, so
        the replayed store passes through the same guards. With ``upto``,
        only events with sequence_number < upto are applied, giving the
        store as it was at that point.

        Args:
            upto: Exclusive upper bound on sequence numbers (None = all)

        Returns:
            New LedgerStore with the same owner and replayed state

        Raises:
            LedgerStoreError: If an event cannot be re-applied or re-applying
                it emits a different event
        """
        with self._lock:
            records = [r for r in self._event_log if upto is None or r.sequence_number < upto]

        replayed = LedgerStore(self._owner, name=f"{self.name}_replayed", verbose=self.verbose)
        for record in records:
            event = record.event
            try:
                if isinstance(event, ValueChanged):
                    result = replayed.set_value(record.caller, event.new_value)
                elif isinstance(event, Deposited):
                    result = replayed.deposit(record.caller, event.amount)
                elif isinstance(event, Withdrawn):
                    result = replayed.withdraw(record.caller, event.amount)
                else:
                    raise LedgerStoreError(f"Unknown event {event!r}")
            except LedgerStoreError as e:
                raise LedgerStoreError(
                    f"Replay failed at event #{record.sequence_number}: {e}"
                ) from e
            if result.event != event:
                raise LedgerStoreError(
                    f"Replay diverged at event #{record.sequence_number}: "
                    f"expected {event!r}, got {result.event!r}"
                )
        return replayed

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"LedgerStore({self.name!r}, owner={self._owner!r}, value={self._value}, "
                f"accounts={len(self._balances)}, events={len(self._event_log)})"
            )
