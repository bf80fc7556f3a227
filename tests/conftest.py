"""
Pytest configuration for the livebridge test suite.
"""

import pytest


@pytest.fixture
def anyio_backend():
    """Run ``@pytest.mark.anyio`` tests on asyncio only."""
    return "asyncio"
