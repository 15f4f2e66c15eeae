"""Shared pytest configuration for the lifelist test suite."""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast, isolated tests of one module")
    config.addinivalue_line("markers", "integration: tests that run the engine or server over a real data file")
