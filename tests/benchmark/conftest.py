"""Configuration for full-length fuzz runs."""


def pytest_configure(config):  # type: ignore[no-untyped-def]
    """Register the benchmark marker."""
    config.addinivalue_line(
        "markers", "benchmark: full-length fuzz run at the default iteration count"
    )
