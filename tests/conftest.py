"""
Pytest fixtures for the payroll engine test suite.

Provides:
- The packaged statutory rate snapshot
- Standard payroll periods
- JSON log capture on the payroll_kernel logger

No database, no network: every calculator is a pure function.  Input
builders live in ``tests.factories``.
"""

import logging
from io import StringIO

import pytest

from payroll_config import get_active_rates
from payroll_kernel.domain.records import PeriodContext
from payroll_kernel.logging_config import LogContext, configure_logging, reset_logging


@pytest.fixture(scope="session")
def rates():
    """The packaged statutory rate tables."""
    return get_active_rates()


@pytest.fixture
def june_2024():
    return PeriodContext(2024, 6)


@pytest.fixture
def april_2024():
    return PeriodContext(2024, 4)


@pytest.fixture
def log_stream():
    """Attach a JSON handler to the payroll_kernel logger and yield its stream."""
    reset_logging()
    LogContext.clear()
    stream = StringIO()
    configure_logging(level=logging.DEBUG, handler=logging.StreamHandler(stream))
    yield stream
    LogContext.clear()
    reset_logging()
