"""Test suite for propstore.

This package contains:
- Unit tests for observable resolution, evaluation and aggregation
- Unit tests for storage allocation and slot access
- End-to-end recording tests driving a small propagation loop
"""
