"""
Authorization Conformance Tests

INVARIANT: Only the owner mutates the value or withdraws.

    ∀ caller c ≠ owner, ∀ arguments x:
        set_value(c, x) raises Unauthorized ∧ state unchanged
        withdraw(c, x) raises Unauthorized ∧ state unchanged

    ∀ caller c: deposit(c, x > 0) is permitted.

The owner is fixed at construction and cannot be reassigned.
"""

import pytest
from hypothesis import given, settings
from decimal import Decimal

from ledgerstore import LedgerStore, Unauthorized

from tests.helpers import OWNER, OTHER, snapshot
from .strategies import amounts, positive_amounts, non_owners, values


def _store():
    store = LedgerStore(OWNER, verbose=False)
    store.deposit(OWNER, Decimal("5"))
    store.set_value(OWNER, 7)
    return store


class TestAuthorizationProperties:
    """Property-based authorization tests."""

    @given(non_owners, values)
    @settings(max_examples=100)
    def test_non_owner_never_sets_value(self, caller, value):
        store = _store()
        before = snapshot(store)
        with pytest.raises(Unauthorized):
            store.set_value(caller, value)
        assert snapshot(store) == before

    @given(non_owners, amounts())
    @settings(max_examples=100)
    def test_non_owner_never_withdraws(self, caller, amount):
        store = _store()
        store.deposit(caller, Decimal("5"))
        before = snapshot(store)
        with pytest.raises(Unauthorized):
            store.withdraw(caller, amount)
        assert snapshot(store) == before

    @given(non_owners, positive_amounts)
    @settings(max_examples=50)
    def test_anyone_may_deposit(self, caller, amount):
        store = _store()
        store.deposit(caller, amount)
        assert store.get_balance(caller) == amount

    @given(values)
    @settings(max_examples=50)
    def test_owner_always_sets_value(self, value):
        store = _store()
        store.set_value(OWNER, value)
        assert store.get_value() == value


class TestAuthorizationExamples:
    """Explicit authorization examples."""

    def test_owner_identity_is_case_sensitive(self):
        store = _store()
        with pytest.raises(Unauthorized):
            store.set_value(OWNER.lower(), 1)

    def test_owner_survives_every_operation(self):
        store = _store()
        store.deposit(OTHER, 1)
        store.withdraw(OWNER, 1)
        store.set_value(OWNER, 0)
        assert store.owner == OWNER
        assert store.clone().owner == OWNER
        assert store.replay().owner == OWNER
