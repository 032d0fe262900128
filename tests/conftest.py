"""Shared fixtures for Review Ledger Service tests."""

import logging
import pytest

from review_service.config.settings import Settings
from review_service.core.dispatcher import Dispatcher
from review_service.core.response_builder import ResponseBuilder
from review_service.core.review_manager import ReviewManager
from review_service.infrastructure.ledger import MemoryLedger


@pytest.fixture
def settings():
    """Settings for an in-memory ledger with default options."""
    return Settings(ledger_backend="memory")


@pytest.fixture
def ledger():
    """Empty in-memory ledger."""
    return MemoryLedger()


@pytest.fixture
def responses():
    return ResponseBuilder(1048576, logging.getLogger("tests.responses"))


@pytest.fixture
def manager(ledger, settings, responses):
    return ReviewManager(ledger, settings, responses=responses)


@pytest.fixture
def dispatcher(manager, responses):
    return Dispatcher(manager, responses)


@pytest.fixture
def widget_args():
    """Arguments creating review r1."""
    return ["r1", "Widget", "Great!", "Alice", "NY", "5"]
