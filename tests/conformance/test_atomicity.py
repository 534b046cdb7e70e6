"""
Atomicity Conformance Tests

INVARIANT: Invocations are all-or-nothing.

    ∀ invocation I:
        I succeeds ⟹ every write of I is committed
        I fails    ⟹ no write of I is committed

A purchase writes three records (seller, buyer, property). A failure at any
point, including between two of those writes, leaves the committed state
byte-identical to what it was before the invocation.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from datetime import datetime
from unittest import mock

from regnet import (
    Registry, InMemoryLedgerStore, ExecuteResult, StoreError,
    APPLICANT_MSP_ID, APPROVER_MSP_ID,
)
from regnet import entities


T0 = datetime(2025, 1, 1, 9, 0)


def _seeded_registry():
    registry = Registry(InMemoryLedgerStore("atomicity", initial_time=T0))
    for name, tax_id, codes in (("alice", "1001", ["upg1000"]), ("bob", "2002", ["upg100", "upg100"])):
        registry.submit(APPLICANT_MSP_ID, "request_account", name, f"{name}@x", "555", tax_id)
        registry.submit(APPROVER_MSP_ID, "approve_account", name, tax_id)
        for code in codes:
            registry.submit(APPLICANT_MSP_ID, "recharge", name, tax_id, code)
    registry.submit(APPLICANT_MSP_ID, "request_property", "bob", "2002", "PROP-001", 300)
    registry.submit(APPROVER_MSP_ID, "approve_property", "PROP-001")
    registry.submit(APPLICANT_MSP_ID, "update_status", "PROP-001", "bob", "2002", "onSale")
    return registry


def _failing_save(fail_on, exc):
    """Wrap entities.save so that call number fail_on raises exc."""
    calls = {"n": 0}
    real_save = entities.save

    def _save(stub, key, record):
        calls["n"] += 1
        if calls["n"] == fail_on:
            raise exc
        real_save(stub, key, record)

    return _save


class TestPurchaseAtomicity:
    """A purchase commits all three records or none."""

    @given(fail_on=st.integers(min_value=1, max_value=3))
    @settings(max_examples=10, deadline=None)
    def test_store_failure_mid_persistence(self, fail_on):
        """
        PROPERTY: A substrate failure on any of the three writes leaves the
        committed state unchanged and the purchase REJECTED.
        """
        registry = _seeded_registry()
        before = registry.store.snapshot()
        commits = len(registry.store.transaction_log)

        with mock.patch("regnet.properties.save", _failing_save(fail_on, StoreError("disk full"))):
            result = registry.submit(APPLICANT_MSP_ID, "purchase", "PROP-001", "alice", "1001")

        assert result.status is ExecuteResult.REJECTED
        assert result.error_kind == "StoreError"
        assert registry.store.snapshot() == before
        assert len(registry.store.transaction_log) == commits

    @given(fail_on=st.integers(min_value=1, max_value=3))
    @settings(max_examples=10, deadline=None)
    def test_crash_mid_persistence(self, fail_on):
        """
        PROPERTY: An unexpected exception between writes propagates, and
        nothing is committed.
        """
        registry = _seeded_registry()
        before = registry.store.snapshot()

        with mock.patch("regnet.properties.save", _failing_save(fail_on, RuntimeError("crash"))):
            with pytest.raises(RuntimeError):
                registry.submit(APPLICANT_MSP_ID, "purchase", "PROP-001", "alice", "1001")

        assert registry.store.snapshot() == before

    def test_purchase_succeeds_after_failure(self):
        registry = _seeded_registry()
        with mock.patch("regnet.properties.save", _failing_save(3, StoreError("disk full"))):
            registry.submit(APPLICANT_MSP_ID, "purchase", "PROP-001", "alice", "1001")

        result = registry.submit(APPLICANT_MSP_ID, "purchase", "PROP-001", "alice", "1001")

        assert result.status is ExecuteResult.APPLIED
        view = registry.evaluate(APPLICANT_MSP_ID, "view_account", "alice", "1001").unwrap()
        assert view.balance == 700


class TestRejectionLeavesStateIntact:
    """Every rejected invocation leaves the committed bytes unchanged."""

    @pytest.mark.parametrize("msp_id, operation, args", [
        (APPLICANT_MSP_ID, "purchase", ("PROP-001", "bob", "2002")),
        (APPLICANT_MSP_ID, "purchase", ("PROP-404", "alice", "1001")),
        (APPROVER_MSP_ID, "purchase", ("PROP-001", "alice", "1001")),
        (APPLICANT_MSP_ID, "update_status", ("PROP-001", "bob", "2002", "onSale")),
        (APPLICANT_MSP_ID, "update_status", ("PROP-001", "alice", "1001", "registered")),
        (APPLICANT_MSP_ID, "recharge", ("alice", "1001", "upg5000")),
        (APPROVER_MSP_ID, "approve_account", ("alice", "1001")),
        (APPROVER_MSP_ID, "approve_property", ("PROP-001",)),
        (APPLICANT_MSP_ID, "request_property", ("bob", "2002", "PROP-001", 10)),
        ("intruderMSP", "request_account", ("eve", "e@x", "1", "6666")),
    ])
    def test_rejected_invocation(self, msp_id, operation, args):
        registry = _seeded_registry()
        before = registry.store.snapshot()

        result = registry.submit(msp_id, operation, *args)

        assert result.status is ExecuteResult.REJECTED
        assert registry.store.snapshot() == before

    def test_insufficient_funds_mutates_nothing(self):
        registry = _seeded_registry()
        registry.submit(APPLICANT_MSP_ID, "request_account", "carol", "c@x", "555", "3003")
        registry.submit(APPROVER_MSP_ID, "approve_account", "carol", "3003")
        registry.submit(APPLICANT_MSP_ID, "recharge", "carol", "3003", "upg100")
        before = registry.store.snapshot()

        result = registry.submit(APPLICANT_MSP_ID, "purchase", "PROP-001", "carol", "3003")

        assert result.error_kind == "InsufficientFundsError"
        assert registry.store.snapshot() == before
