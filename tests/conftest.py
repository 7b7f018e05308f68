"""Shared fixtures for the scoring test suite."""

import logging

import pytest

from product_catalog import CatalogRepository, load_catalog_document
from product_scorer.config import ScorerConfig, reset_config
from product_scorer.engine import ScoringEngine
from product_scorer.logging_setup import LOGGER_NAMES


@pytest.fixture(scope="session")
def repository():
    """Repository over the bundled catalog."""
    return CatalogRepository.from_path()


@pytest.fixture(scope="session")
def default_config():
    return ScorerConfig()


@pytest.fixture(scope="session")
def engine(repository, default_config):
    return ScoringEngine(repository, default_config)


@pytest.fixture
def catalog_document():
    """A fresh, mutable copy of the bundled catalog document."""
    return load_catalog_document()


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Keep the process-wide config and logger handlers from leaking between tests."""
    yield
    reset_config()
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.handlers = [h for h in logger.handlers if isinstance(h, logging.NullHandler)]
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
