"""
Core types and pure functions for the owner-administered ledger store.

This module provides the foundational data structures and protocols:
1. Protocols: StoreView for read-only store access
2. Immutable data structures: ValueChanged, Deposited, Withdrawn, EventRecord
3. Exceptions: LedgerStoreError, the guard-failure error types and SubscriberError
4. Type aliases: Account, BalanceMap
5. Amount normalization: to_amount()

All functions in this module are pure. No function can mutate store state.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from decimal import Context, Decimal, Inexact, InvalidOperation, Overflow, ROUND_HALF_EVEN
from typing import Any, ClassVar, Dict, List, Protocol, Tuple, Type, runtime_checkable


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Balances must never be rounded. All ledger arithmetic goes through this
# private context instead of the global one, so callers remain free to
# change decimal.getcontext().
#
# Context parameters:
#   - prec=78: digits of the largest uint256, the widest native amount
#   - traps Inexact: a sum that cannot be represented exactly is an error
#
LEDGER_CONTEXT = Context(
    prec=78,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, Inexact, Overflow],
)


# ============================================================================
# CONSTANTS
# ============================================================================

ZERO = Decimal("0")

# Revert messages, kept identical across every guard that raises them.
MSG_UNAUTHORIZED = "Only owner can call this function"
MSG_INVALID_AMOUNT = "Must send Coins"
MSG_INSUFFICIENT_BALANCE = "Insufficient balance"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Identity of an account (the caller supplied by the dispatch layer).
Account = str

# Mapping from account to its balance in native currency units.
BalanceMap = Dict[Account, Decimal]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class StoreView(Protocol):
    """
    Read-only interface to store state.

    Functions and subscribers accepting a StoreView declare their read-only
    intent. LedgerStore and StoreSession both implement it.
    """

    @property
    def owner(self) -> Account:
        """Return the account that deployed the store."""
        ...

    def get_value(self) -> int:
        """Return the current configuration value."""
        ...

    def get_balance(self, account: Account) -> Decimal:
        """
        Return the balance of an account.

        Returns Decimal("0") if the account never deposited.
        """
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerStoreError(Exception):
    """Base exception for all store guard failures."""
    pass


class Unauthorized(LedgerStoreError):
    """Raised when a caller other than the owner invokes a privileged operation."""

    def __init__(self, caller: Account, operation: str):
        super().__init__(MSG_UNAUTHORIZED)
        self.caller = caller
        self.operation = operation


class InvalidAmount(LedgerStoreError):
    """Raised when an amount is non-positive, non-finite or not a number."""

    def __init__(self, amount: Any, msg: str = MSG_INVALID_AMOUNT):
        super().__init__(msg)
        self.amount = amount


class InsufficientBalance(LedgerStoreError):
    """Raised when a withdrawal exceeds the caller's current balance."""

    def __init__(self, account: Account, requested: Decimal, available: Decimal):
        super().__init__(MSG_INSUFFICIENT_BALANCE)
        self.account = account
        self.requested = requested
        self.available = available


class SubscriberError(Exception):
    """
    Raised after delivery when one or more subscribers failed.

    The mutations behind the failed deliveries are committed and logged,
    and every other subscriber received them. Not a LedgerStoreError: the
    call itself succeeded.

    Attributes:
        failures: (record, exception) pairs in delivery order
    """

    def __init__(self, failures: List[Tuple[EventRecord, Exception]]):
        self.failures = list(failures)
        detail = "; ".join(f"#{r.sequence_number} {r.name}: {e!r}" for r, e in self.failures)
        super().__init__(
            f"Committed, but {len(self.failures)} subscriber call(s) failed: {detail}"
        )

    @property
    def records(self) -> List[EventRecord]:
        """Committed records whose delivery failed, without duplicates."""
        seen: List[EventRecord] = []
        for record, _ in self.failures:
            if record not in seen:
                seen.append(record)
        return seen


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class ValueChanged:
    """Emitted by set_value(). Fires even when old_value == new_value."""
    name: ClassVar[str] = "ValueChanged"

    old_value: int
    new_value: int

    @property
    def args(self) -> Tuple[Any, ...]:
        return (self.old_value, self.new_value)


@dataclass(frozen=True, slots=True)
class Deposited:
    """Emitted by deposit()."""
    name: ClassVar[str] = "Deposited"

    account: Account
    amount: Decimal

    @property
    def args(self) -> Tuple[Any, ...]:
        return (self.account, self.amount)


@dataclass(frozen=True, slots=True)
class Withdrawn:
    """Emitted by withdraw()."""
    name: ClassVar[str] = "Withdrawn"

    account: Account
    amount: Decimal

    @property
    def args(self) -> Tuple[Any, ...]:
        return (self.account, self.amount)


StoreEvent = Any  # ValueChanged | Deposited | Withdrawn

EVENT_TYPES: Tuple[Type, ...] = (ValueChanged, Deposited, Withdrawn)


@dataclass(frozen=True, slots=True)
class EventRecord:
    """
    An emitted event as recorded in the store's audit trail.

    Attributes:
        sequence_number: Monotonic position within the store's event log.
        caller: Account whose call produced the event.
        event: The event payload (ValueChanged, Deposited or Withdrawn).
    """
    sequence_number: int
    caller: Account
    event: StoreEvent

    @property
    def name(self) -> str:
        return self.event.name

    def matches(self, event_type: Type | None = None, **field_values: Any) -> bool:
        """Return True if the event has the given type and field values."""
        if event_type is not None and not isinstance(self.event, event_type):
            return False
        for key, expected in field_values.items():
            if getattr(self.event, key, _MISSING) != expected:
                return False
        return True

    def __repr__(self) -> str:
        parts = ", ".join(f"{f.name}={getattr(self.event, f.name)!r}" for f in fields(self.event))
        return f"#{self.sequence_number} {self.event.name}({parts}) by {self.caller}"


_MISSING = object()


def event_type_by_name(name: str) -> Type:
    """Look up an event class from its name ("Deposited" -> Deposited)."""
    for event_type in EVENT_TYPES:
        if event_type.name == name:
            return event_type
    raise KeyError(f"Unknown event type: {name}")


def filter_events(
    records: List[EventRecord],
    event_type: Type | str | None = None,
    **field_values: Any,
) -> List[EventRecord]:
    """
    Select event records by type and exact field values.

    Example:
        filter_events(log, Deposited, account="alice")
        filter_events(log, "ValueChanged", new_value=100)
    """
    if isinstance(event_type, str):
        event_type = event_type_by_name(event_type)
    return [r for r in records if r.matches(event_type, **field_values)]


# ============================================================================
# AMOUNTS
# ============================================================================

def to_amount(value: Any) -> Decimal:
    """
    Convert a caller-supplied amount to a finite Decimal without rounding.

    Floats go through str() so that 0.4 becomes Decimal("0.4"), not its
    binary expansion. Negative zero is returned as positive zero.

    Raises:
        InvalidAmount: If the value is a bool, not numeric, NaN or infinite.
    """
    if isinstance(value, bool):
        raise InvalidAmount(value)
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidAmount(value) from None
    else:
        raise InvalidAmount(value)
    if not amount.is_finite():
        raise InvalidAmount(value)
    if amount.is_zero():
        # "-0" is zero, not a negative amount
        amount = amount.copy_abs()
    return amount


def checked_add(a: Decimal, b: Decimal) -> Decimal:
    """
    Add two amounts exactly.

    Raises:
        InvalidAmount: If the exact sum needs more than LEDGER_CONTEXT.prec digits
    """
    try:
        return LEDGER_CONTEXT.add(a, b)
    except (Inexact, Overflow):
        raise InvalidAmount(b, "Amount exceeds ledger precision") from None


def checked_sub(a: Decimal, b: Decimal) -> Decimal:
    """Subtract two amounts exactly; see checked_add()."""
    try:
        return LEDGER_CONTEXT.subtract(a, b)
    except (Inexact, Overflow):
        raise InvalidAmount(b, "Amount exceeds ledger precision") from None
