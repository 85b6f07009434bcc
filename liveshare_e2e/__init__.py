"""
LiveShare E2E suites package.

Keeps `liveshare_e2e` importable to support:
  - IDE navigation
  - programmatic runners (e.g., `run_tests.py`)
  - shared fixtures between the unit and browser suites

Credentials are read from the environment; nothing here holds secrets.
"""
