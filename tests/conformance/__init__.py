"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the multi-token ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Supply equals the sum of balances; transfers move, never create
2. atomicity.py - All-or-nothing batches and receiver rollback
3. determinism.py - Same operations, same balances and events

These tests use hypothesis for property-based testing.
"""
