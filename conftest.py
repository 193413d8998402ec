"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Custom marks
------------
large_scale
    Applied to tests that build DAGs from tree samples large enough to take
    several seconds on a single CPU core.  Deselect with
    ``-m "not large_scale"``.

engine
    Applied to tests that execute operation vectors with the numpy reference
    engine in tests/reference_engine.py rather than only inspecting them.

    Registration here suppresses PytestUnknownMarkWarning and makes the marks
    visible in ``pytest --markers``.
"""


def pytest_configure(config):
    """
    Configure pytest before test collection begins.
    """
    config.addinivalue_line(
        "markers",
        "large_scale: DAG built from a large tree sample (slow)",
    )
    config.addinivalue_line(
        "markers",
        "engine: executes operation vectors with the numpy reference engine",
    )
