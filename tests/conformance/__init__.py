"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the replay engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Sub-loan principal and accruals add up to the parent loan
2. determinism.py - Replaying the same events yields the same history
3. temporal.py - User order, tie-breaking and date queries

These tests use hypothesis for property-based testing.
"""
