import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    # Playwright's async API runs on asyncio only.
    return "asyncio"
