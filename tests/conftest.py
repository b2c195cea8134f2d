"""
Shared pytest fixtures and configuration for PyCyclet tests.
"""

import pytest

from pycyclet import ActionDispatcher, default_dispatcher, global_error_handler


@pytest.fixture(autouse=True)
def reset_default_dispatcher():
    """Drop every handler registered on the default dispatcher between tests."""
    default_dispatcher.reset()
    yield
    default_dispatcher.reset()


@pytest.fixture(autouse=True)
def quiet_error_handler(monkeypatch):
    """Keep the global error handler from attaching console handlers during tests."""
    monkeypatch.setattr(global_error_handler, "log_to_console", False)
    monkeypatch.setattr(global_error_handler, "handlers", [])


@pytest.fixture
def dispatcher():
    """Provide a fresh ActionDispatcher for tests that need isolation."""
    return ActionDispatcher()
