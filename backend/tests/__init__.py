"""
Test Suite

This module contains all tests for the Operation Authorization Service backend.

Structure:
    tests/
    ├── __init__.py             # This file
    ├── conftest.py             # Pytest fixtures, in-memory repositories
    ├── unit/                   # Unit tests
    │   ├── __init__.py
    │   ├── test_engine/        # Policy, token and movement checks
    │   ├── test_repositories/  # MongoDB repositories (mocked collections)
    │   ├── test_services/      # Service layer tests
    │   └── test_utils/         # Utility tests
    └── integration/            # Integration tests
        ├── __init__.py
        └── test_api/           # API endpoint tests

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/
    pytest backend/tests/integration/
"""
