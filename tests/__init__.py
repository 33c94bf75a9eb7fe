"""
IncomeGuard Test Suite
======================

Test organization:
- tests/unit/               - Unit tests (no external dependencies)
- tests/services/registry/  - HTTP API tests against the mock backends

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=incomeguard        # With coverage
"""
