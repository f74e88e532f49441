import pytest

from ledger_scheduler.logging_config import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    yield
    reset_logging()
