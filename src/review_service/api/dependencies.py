"""Shared API dependencies."""

from fastapi import Request

from ..core.dispatcher import Dispatcher
from ..infrastructure.ledger import LedgerProvider


def get_dispatcher(request: Request) -> Dispatcher:
    """Dispatcher created during application startup."""
    return request.app.state.dispatcher


def get_ledger(request: Request) -> LedgerProvider:
    """Ledger provider created during application startup."""
    return request.app.state.ledger
