"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the registry.
Any compliant substrate or operation set MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Purchases move coins and ownership, never create them
2. atomicity.py - All-or-nothing invocation semantics
3. isolation.py - Concurrent invocations commit as if serial
4. idempotency.py - Repeated approvals, requests and transaction ids
5. determinism.py - Pure keys and reproducible state
6. record_encoding.py - Records survive persistence unchanged

These tests use hypothesis for property-based testing.
"""
