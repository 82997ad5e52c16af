"""
Test Suite for Journal Perf.

Test organization:
    - unit/: Unit tests for individual components
    - integration/: Components composed at the call site
    - performance/: Scale benchmarks (marker: performance)
    - fixtures/: Shared configuration files

Running Tests:
    pytest tests/                           # All tests
    pytest tests/unit/                      # Unit tests only
    pytest -m "not performance"             # Skip benchmarks
"""
