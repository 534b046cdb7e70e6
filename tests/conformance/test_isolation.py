"""
Isolation Conformance Tests

INVARIANT: Concurrent invocations behave as if run one after the other.

    ∀ invocations I1, I2 that read a record the other writes:
        at most one of them commits; the other is rejected with
        TransactionConflict and commits nothing

Two buyers racing for the same listed property can therefore never both
pay for it, and a seller can never be credited twice.
"""

import threading

import pytest
from datetime import datetime

from regnet import (
    Registry, InMemoryLedgerStore, InvocationContext, ExecuteResult,
    TransactionConflict, APPLICANT_MSP_ID, APPROVER_MSP_ID,
    account_key, decode, purchase, recharge, Account, Property, property_key,
)


T0 = datetime(2025, 1, 1, 9, 0)


@pytest.fixture
def contested():
    """bob lists PROP-001 at 300; alice and carol both hold 1000."""
    registry = Registry(InMemoryLedgerStore("isolation", initial_time=T0))
    for name, tax_id in (("alice", "1001"), ("bob", "2002"), ("carol", "3003")):
        registry.submit(APPLICANT_MSP_ID, "request_account", name, f"{name}@x", "555", tax_id)
        registry.submit(APPROVER_MSP_ID, "approve_account", name, tax_id)
        registry.submit(APPLICANT_MSP_ID, "recharge", name, tax_id, "upg1000")
    registry.submit(APPLICANT_MSP_ID, "request_property", "bob", "2002", "PROP-001", 300)
    registry.submit(APPROVER_MSP_ID, "approve_property", "PROP-001")
    registry.submit(APPLICANT_MSP_ID, "update_status", "PROP-001", "bob", "2002", "onSale")
    return registry


def _balance(store, name, tax_id):
    return decode(Account, store.get_state(account_key(name, tax_id))).balance


class TestConcurrentPurchase:

    def test_second_buyer_conflicts(self, contested):
        store = contested.store
        tx_alice, tx_carol = store.begin(), store.begin()
        ctx_alice = InvocationContext.for_transaction(tx_alice, APPLICANT_MSP_ID)
        ctx_carol = InvocationContext.for_transaction(tx_carol, APPLICANT_MSP_ID)

        # both see the property on sale before either commits
        purchase(ctx_alice, "PROP-001", "alice", "1001")
        purchase(ctx_carol, "PROP-001", "carol", "3003")

        tx_alice.commit()
        with pytest.raises(TransactionConflict):
            tx_carol.commit()

        prop = decode(Property, store.get_state(property_key("PROP-001")))
        assert prop.owner_key == account_key("alice", "1001")
        assert _balance(store, "alice", "1001") == 700
        assert _balance(store, "carol", "3003") == 1000
        assert _balance(store, "bob", "2002") == 1300

    def test_recharge_during_purchase_conflicts(self, contested):
        store = contested.store
        tx_buy, tx_topup = store.begin(), store.begin()

        purchase(InvocationContext.for_transaction(tx_buy, APPLICANT_MSP_ID), "PROP-001", "alice", "1001")
        recharge(InvocationContext.for_transaction(tx_topup, APPLICANT_MSP_ID), "alice", "1001", "upg100")

        tx_topup.commit()
        with pytest.raises(TransactionConflict):
            tx_buy.commit()

        assert _balance(store, "alice", "1001") == 1100
        assert _balance(store, "bob", "2002") == 1000

    def test_threads_racing_for_one_property(self, contested):
        barrier = threading.Barrier(2)
        results = {}

        def buy(name, tax_id):
            barrier.wait()
            results[name] = contested.submit(APPLICANT_MSP_ID, "purchase", "PROP-001", name, tax_id)

        threads = [
            threading.Thread(target=buy, args=("alice", "1001")),
            threading.Thread(target=buy, args=("carol", "3003")),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        applied = [r for r in results.values() if r.status is ExecuteResult.APPLIED]
        assert len(applied) == 1
        loser = next(r for r in results.values() if r.status is ExecuteResult.REJECTED)
        assert loser.error_kind in ("TransactionConflict", "NotForSaleError")

        store = contested.store
        assert _balance(store, "bob", "2002") == 1300
        total = sum(_balance(store, n, t) for n, t in (("alice", "1001"), ("bob", "2002"), ("carol", "3003")))
        assert total == 3000


class TestReadIsolation:

    def test_uncommitted_writes_invisible(self, contested):
        store = contested.store
        tx = store.begin()
        purchase(InvocationContext.for_transaction(tx, APPLICANT_MSP_ID), "PROP-001", "alice", "1001")

        view = contested.evaluate(APPLICANT_MSP_ID, "view_property", "PROP-001").unwrap()
        assert view.owner_key == account_key("bob", "2002")

        tx.commit()
        view = contested.evaluate(APPLICANT_MSP_ID, "view_property", "PROP-001").unwrap()
        assert view.owner_key == account_key("alice", "1001")
