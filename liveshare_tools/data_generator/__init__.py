"""Test data generators (unique names, users, payment fixtures)."""
