"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the LedgerStore.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_authorization.py - Only the owner mutates the value or withdraws
2. test_atomicity.py - Failed calls leave no trace
3. test_conservation.py - Balances equal deposits minus withdrawals, never negative
4. test_event_ordering.py - One event per mutation, delivered in log order
5. test_concurrency.py - Concurrent callers never observe partial updates

These tests use hypothesis for property-based testing.
"""
