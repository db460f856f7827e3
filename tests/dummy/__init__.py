"""Fixture state families, transitions and entities used across the test suite."""
