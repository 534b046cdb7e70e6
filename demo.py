#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: The Property Registration Network

A step-by-step walk through the registry. Each step builds on the previous
one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Registration   - The empty registry, request then approve, roles
  4-5:  Coins          - Recharge tiers, invalid codes
  6-7:  Properties     - Registering and listing a property
  8-10: Purchase       - The three-record transfer, rejections, replay

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing

Logging follows RegistryConfig.from_env(): REGNET_LOG_LEVEL (WARNING here
unless set) and REGNET_LOG_FORMAT ("standard" or "json").
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import os
import sys

from regnet import (
    Registry, InMemoryLedgerStore, RegistryConfig,
    APPLICANT_MSP_ID, APPROVER_MSP_ID, RECHARGE_TIERS,
    ExecuteResult, account_key,
)
from regnet.keys import describe_key
from regnet.logging import setup_logging


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)
    property_id: str = "PROP-001"
    property_price: int = 300


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show(result):
    """Print an InvocationResult on one line."""
    if result.status is ExecuteResult.REJECTED:
        print(f"    {result.operation}: {result.status.name} ({result.error_kind}: {result.message})")
    else:
        print(f"    {result.operation}: {result.status.name} (tx={result.tx_id})")
    return result


def balances(registry: Registry, *holders):
    for name, tax_id in holders:
        account = registry.evaluate(APPLICANT_MSP_ID, "view_account", name, tax_id).unwrap()
        print(f"    {name:<6} balance = {account.balance}")


# ============================================================================
# PHASE 1: REGISTRATION
# ============================================================================

def step_01_empty_registry(config: RegistryConfig):
    step_header(1, "The Empty Registry",
        "A registry is a set of operations over a transactional key-value store.")

    print(">>> store = InMemoryLedgerStore('tutorial', initial_time=datetime(2025, 1, 1, 9, 0))")
    store = InMemoryLedgerStore("tutorial", initial_time=CONFIG.start_time)
    registry = Registry(store, config)
    registry.instantiate()

    section_header("Initial State")
    print(f"Namespace:       {registry.config.namespace}")
    print(f"Applicant org:   {registry.config.applicant_msp_id}")
    print(f"Approver org:    {registry.config.approver_msp_id}")
    print(f"Keys stored:     {len(store)}")
    print(f"Commits:         {len(store.transaction_log)}")
    return registry


def step_02_request_and_approve(registry: Registry):
    step_header(2, "Request, Then Approve",
        "Accounts exist only after the registrar approves a user's request.")

    print('>>> registry.submit("usersMSP", "request_account", "alice", ...)')
    for name, tax_id in (("alice", "1001"), ("bob", "2002")):
        show(registry.submit(APPLICANT_MSP_ID, "request_account",
                             name, f"{name}@example.com", "555-0100", tax_id))

    section_header("Before approval")
    show(registry.evaluate(APPLICANT_MSP_ID, "view_account", "alice", "1001"))

    print('\n>>> registry.submit("registrarMSP", "approve_account", "alice", "1001")')
    for name, tax_id in (("alice", "1001"), ("bob", "2002")):
        show(registry.submit(APPROVER_MSP_ID, "approve_account", name, tax_id))

    section_header("Approving twice")
    show(registry.submit(APPROVER_MSP_ID, "approve_account", "alice", "1001"))

    section_header("Where records live")
    for key in sorted(registry.store.snapshot()):
        print(f"    {describe_key(key)}")
    return registry


def step_03_roles(registry: Registry):
    step_header(3, "Roles",
        "Each mutating operation belongs to exactly one organization.")

    show(registry.submit(APPROVER_MSP_ID, "request_account", "eve", "e@x", "1", "6666"))
    show(registry.submit(APPLICANT_MSP_ID, "approve_account", "bob", "2002"))
    show(registry.submit("intruderMSP", "recharge", "alice", "1001", "upg1000"))
    print("\n    Views are open to every caller:")
    show(registry.evaluate("intruderMSP", "view_account", "alice", "1001"))
    return registry


# ============================================================================
# PHASE 2: COINS
# ============================================================================

def step_04_recharge(registry: Registry):
    step_header(4, "Recharge",
        "Coins enter the system only through fixed recharge tiers.")

    for code, amount in RECHARGE_TIERS.items():
        print(f"    {code:<8} -> {amount} coins")
    print()
    show(registry.submit(APPLICANT_MSP_ID, "recharge", "alice", "1001", "upg1000"))
    show(registry.submit(APPLICANT_MSP_ID, "recharge", "bob", "2002", "upg100"))
    show(registry.submit(APPLICANT_MSP_ID, "recharge", "bob", "2002", "upg100"))
    balances(registry, ("alice", "1001"), ("bob", "2002"))
    return registry


def step_05_invalid_code(registry: Registry):
    step_header(5, "Invalid Codes",
        "An unknown code is rejected and nothing is written.")

    before = registry.store.snapshot()
    show(registry.submit(APPLICANT_MSP_ID, "recharge", "alice", "1001", "upg9999"))
    print(f"\n    State unchanged: {registry.store.snapshot() == before}")
    return registry


# ============================================================================
# PHASE 3: PROPERTIES
# ============================================================================

def step_06_register_property(registry: Registry):
    step_header(6, "Registering a Property",
        "Properties follow the same request/approve pattern as accounts.")

    show(registry.submit(APPLICANT_MSP_ID, "request_property",
                         "bob", "2002", CONFIG.property_id, str(CONFIG.property_price)))
    show(registry.submit(APPROVER_MSP_ID, "approve_property", CONFIG.property_id))
    prop = registry.evaluate(APPLICANT_MSP_ID, "view_property", CONFIG.property_id).unwrap()
    print(f"\n    owner  = {describe_key(prop.owner_key)}")
    print(f"    price  = {prop.price}")
    print(f"    status = {prop.status.value}")
    return registry


def step_07_listing(registry: Registry):
    step_header(7, "Listing",
        "Only the owner can list a property, and only a real change is accepted.")

    show(registry.submit(APPLICANT_MSP_ID, "update_status",
                         CONFIG.property_id, "alice", "1001", "onSale"))
    show(registry.submit(APPLICANT_MSP_ID, "update_status",
                         CONFIG.property_id, "bob", "2002", "onSale"))
    show(registry.submit(APPLICANT_MSP_ID, "update_status",
                         CONFIG.property_id, "bob", "2002", "onSale"))
    return registry


# ============================================================================
# PHASE 4: PURCHASE
# ============================================================================

def step_08_purchase(registry: Registry):
    step_header(8, "Purchase",
        "Buyer debited, seller credited, owner changed: one commit, three records.")

    balances(registry, ("alice", "1001"), ("bob", "2002"))
    registry.store.advance_time(CONFIG.start_time + timedelta(days=1))
    print()
    result = show(registry.submit(APPLICANT_MSP_ID, "purchase", CONFIG.property_id, "alice", "1001",
                                  tx_id="deal-0001"))
    print()
    balances(registry, ("alice", "1001"), ("bob", "2002"))

    record = registry.store.transaction_log[-1]
    section_header(f"Commit #{record.sequence_number} ({result.tx_id})")
    for key in record.keys:
        print(f"    wrote {describe_key(key)}")

    prop = registry.evaluate(APPLICANT_MSP_ID, "view_property", CONFIG.property_id).unwrap()
    print(f"\n    new owner is alice: {prop.owner_key == account_key('alice', '1001')}")
    print(f"    status reset to:    {prop.status.value}")
    return registry


def step_09_rejections(registry: Registry):
    step_header(9, "Rejected Purchases",
        "A failed purchase changes nothing at all.")

    before = registry.store.snapshot()
    show(registry.submit(APPLICANT_MSP_ID, "purchase", CONFIG.property_id, "bob", "2002"))
    print(f"    State unchanged: {registry.store.snapshot() == before}\n")

    show(registry.submit(APPLICANT_MSP_ID, "update_status", CONFIG.property_id, "alice", "1001", "onSale"))
    show(registry.submit(APPLICANT_MSP_ID, "purchase", CONFIG.property_id, "alice", "1001"))
    show(registry.submit(APPLICANT_MSP_ID, "purchase", CONFIG.property_id, "bob", "2002"))
    print("\n    bob buys it back:")
    balances(registry, ("alice", "1001"), ("bob", "2002"))
    return registry


def step_10_replay(registry: Registry):
    step_header(10, "Replay",
        "Submitting a committed transaction id again does nothing.")

    show(registry.submit(APPLICANT_MSP_ID, "purchase", CONFIG.property_id, "alice", "1001",
                         tx_id="deal-0001"))
    balances(registry, ("alice", "1001"), ("bob", "2002"))

    section_header("Transaction log")
    for record in registry.store.transaction_log:
        print(f"    #{record.sequence_number:<3} {record.operation:<18} {len(record.writes)} write(s)")
    return registry


# ============================================================================
# MAIN
# ============================================================================

def main():
    """Run the complete tutorial."""
    os.environ.setdefault("REGNET_LOG_LEVEL", "WARNING")
    config = RegistryConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    print("=" * 70)
    print("       PROPERTY REGISTRATION NETWORK - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    registry = step_01_empty_registry(config)
    for step in (
        step_02_request_and_approve,
        step_03_roles,
        step_04_recharge,
        step_05_invalid_code,
        step_06_register_property,
        step_07_listing,
        step_08_purchase,
        step_09_rejections,
        step_10_replay,
    ):
        wait_for_enter()
        registry = step(registry)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:
      - Registration is two-phase: request, then approve
      - Coins enter only through recharge tiers
      - A purchase commits three records together or not at all
      - A committed transaction id is never applied twice

    Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
