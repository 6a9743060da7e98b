"""Shared pytest configuration for the docmirror test suite."""

import logging

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: tests that build large trees")


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog keeps working across tests."""
    yield
    logger = logging.getLogger("docmirror")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
