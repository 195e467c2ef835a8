import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI runs reconfigure structlog against streams that close afterwards."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
