"""
conftest.py - Shared pytest fixtures for LedgerStore tests

Provides common fixtures used across unit, conformance and functional tests:
- Account identities (owner, other, third)
- Fresh and funded stores
- An event recorder subscribed to every event
"""

import pytest
from decimal import Decimal

from ledgerstore import LedgerStore

from tests.helpers import OWNER, OTHER, THIRD, EventRecorder


# =============================================================================
# ACCOUNT FIXTURES
# =============================================================================

@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def other():
    return OTHER


@pytest.fixture
def third():
    return THIRD


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def store():
    """Fresh store deployed by OWNER."""
    return LedgerStore(OWNER, name="test", verbose=False)


@pytest.fixture
def funded_store(store):
    """Store where OWNER holds 1 and OTHER holds 2."""
    store.deposit(OWNER, Decimal("1"))
    store.deposit(OTHER, Decimal("2"))
    return store


@pytest.fixture
def recorder(store):
    """EventRecorder subscribed to every event of ``store``."""
    rec = EventRecorder()
    store.subscribe(None, rec)
    return rec
