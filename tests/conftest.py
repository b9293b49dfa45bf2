"""Shared test configuration."""

import pytest
import structlog


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep log output out of captured stdout."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger("critical"))
    yield
    structlog.reset_defaults()
