"""
Shared pytest fixtures for provider-balancer tests.
"""

import logging
from pathlib import Path

import pytest

from providerbalancer import Provider


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Root test_output directory, created once per session. Plots written by
    the integration tests stay here after the run.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Per-test output directory: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_dir = test_output_root / module_name / request.node.name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture
def providers() -> list[Provider]:
    """Three providers of the same service, weights 1, 2 and 3."""
    return [
        Provider("10.0.0.1", 8080, "com.example.Orders", weight=1, observed_latency=30),
        Provider("10.0.0.2", 8080, "com.example.Orders", weight=2, observed_latency=10),
        Provider("10.0.0.3", 8080, "com.example.Orders", weight=3, observed_latency=20),
    ]


@pytest.fixture(autouse=True)
def reset_providerbalancer_logging():
    """Give every test a package logger with only a NullHandler and no level."""

    def _reset():
        logger = logging.getLogger("providerbalancer")
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()
