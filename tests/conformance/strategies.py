"""
Hypothesis strategies shared by the conformance suite.
"""

from decimal import Decimal
from typing import Tuple

from hypothesis import strategies as st

from ledgerstore import LedgerStore, LedgerStoreError, EventRecord

from tests.helpers import OWNER, OTHER, THIRD


ACCOUNTS = [OWNER, OTHER, THIRD]


def amounts(min_value=Decimal("-5"), max_value=Decimal("10")):
    """Decimal amounts with cent precision, including zero and negatives by default."""
    return st.decimals(
        min_value=min_value,
        max_value=max_value,
        places=2,
        allow_nan=False,
        allow_infinity=False,
    )


positive_amounts = amounts(min_value=Decimal("0.01"))

non_owners = st.text(min_size=1, max_size=12).filter(lambda s: s.strip() and s != OWNER)

values = st.integers(min_value=-(2**63), max_value=2**256)

# (operation, caller, argument)
operations = st.one_of(
    st.tuples(st.just("set_value"), st.sampled_from(ACCOUNTS), values),
    st.tuples(st.just("deposit"), st.sampled_from(ACCOUNTS), amounts()),
    st.tuples(st.just("withdraw"), st.sampled_from(ACCOUNTS), amounts()),
)


def apply(store: LedgerStore, op: Tuple[str, str, object]):
    """
    Invoke one operation on the store.

    Returns the EventRecord on success or the raised LedgerStoreError.
    """
    name, caller, arg = op
    try:
        return getattr(store, name)(caller, arg)
    except LedgerStoreError as e:
        return e


def succeeded(outcome) -> bool:
    return isinstance(outcome, EventRecord)
