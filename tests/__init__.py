"""Test suite for invariant_lk."""
