"""
conftest.py - Shared pytest fixtures for regnet tests

Provides common fixtures used across unit, conformance and functional tests:
- Stores and registries at a fixed logical time
- Contexts for each organization on fresh transactions
- Builders for accounts and properties (funded, listed)
- A standard market: buyer alice (1000), seller bob (200), PROP-001 at 300 on sale
"""

import pytest
from datetime import datetime
from typing import Callable

from regnet import (
    Registry, InMemoryLedgerStore, InvocationContext,
    PropertyStatus, ExecuteResult,
    APPLICANT_MSP_ID, APPROVER_MSP_ID, RECHARGE_TIERS,
    account_key, property_key,
)


T0 = datetime(2025, 1, 1, 9, 0)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _tiers_for(coins: int):
    """Split a coin amount into recharge codes, largest tier first."""
    if coins % 100:
        raise ValueError(f"coins must be a multiple of 100, got {coins}")
    codes = []
    for code, amount in sorted(RECHARGE_TIERS.items(), key=lambda kv: -kv[1]):
        while coins >= amount:
            codes.append(code)
            coins -= amount
    return codes


def _applied(result):
    assert result.status is ExecuteResult.APPLIED, f"{result.operation}: {result.error_kind}: {result.message}"
    return result.payload


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def store():
    """Empty store with a logical clock."""
    return InMemoryLedgerStore("test", initial_time=T0)


@pytest.fixture
def registry(store):
    """Registry over the empty store."""
    return Registry(store)


@pytest.fixture
def make_ctx(store) -> Callable[[str], InvocationContext]:
    """Factory for a context on a new open transaction of the store."""
    def _make(msp_id: str = APPLICANT_MSP_ID) -> InvocationContext:
        return InvocationContext.for_transaction(store.begin(), msp_id)
    return _make


@pytest.fixture
def applicant_ctx(make_ctx):
    return make_ctx(APPLICANT_MSP_ID)


@pytest.fixture
def approver_ctx(make_ctx):
    return make_ctx(APPROVER_MSP_ID)


# =============================================================================
# BUILDERS
# =============================================================================

@pytest.fixture
def open_account(registry):
    """Request, approve and fund an account. Returns the Account."""
    def _open(name: str, tax_id: str, coins: int = 0):
        _applied(registry.submit(APPLICANT_MSP_ID, "request_account",
                                 name, f"{name}@example.com", "555-0100", tax_id))
        _applied(registry.submit(APPROVER_MSP_ID, "approve_account", name, tax_id))
        for code in _tiers_for(coins):
            _applied(registry.submit(APPLICANT_MSP_ID, "recharge", name, tax_id, code))
        return registry.evaluate(APPLICANT_MSP_ID, "view_account", name, tax_id).unwrap()
    return _open


@pytest.fixture
def register_property(registry):
    """Request and approve a property, optionally listing it. Returns the Property."""
    def _register(owner_name: str, owner_tax_id: str, property_id: str, price: int, on_sale: bool = False):
        _applied(registry.submit(APPLICANT_MSP_ID, "request_property",
                                 owner_name, owner_tax_id, property_id, price))
        _applied(registry.submit(APPROVER_MSP_ID, "approve_property", property_id))
        if on_sale:
            _applied(registry.submit(APPLICANT_MSP_ID, "update_status",
                                     property_id, owner_name, owner_tax_id, PropertyStatus.ON_SALE))
        return registry.evaluate(APPLICANT_MSP_ID, "view_property", property_id).unwrap()
    return _register


@pytest.fixture
def market(registry, open_account, register_property):
    """
    Buyer alice with 1000 coins, seller bob with 200 coins owning PROP-001
    (price 300, on sale).
    """
    open_account("alice", "1001", 1000)
    open_account("bob", "2002", 200)
    register_property("bob", "2002", "PROP-001", 300, on_sale=True)
    return registry


@pytest.fixture
def market_keys():
    """Keys of the three records a purchase in the standard market touches."""
    return {
        "buyer": account_key("alice", "1001"),
        "seller": account_key("bob", "2002"),
        "property": property_key("PROP-001"),
    }
