"""
Live e2e fixtures: one Drive session, one browser and one shared-folder
teardown per suite run.

Skipped unless PRINTCHECK_RUN_E2E=1. Requires Drive OAuth client secrets
(and, after the first run, a persisted token) plus installed Playwright
browsers (``playwright install chromium``).
"""

from __future__ import annotations

import logging
import os

import pytest
from anyio import to_thread
from playwright.async_api import async_playwright

from printcheck.app.config import Settings
from printcheck.app.coordinator.pipeline import PrintPermissionPipeline
from printcheck.app.distribution.auth import DriveAuthenticator
from printcheck.app.distribution.drive import DriveDistributor
from printcheck.app.errors import CleanupError
from printcheck.app.fixtures.catalog import build_fixture_pdf, scenario_fixtures

logger = logging.getLogger(__name__)

RUN_E2E = os.environ.get("PRINTCHECK_RUN_E2E") == "1"


def pytest_collection_modifyitems(config, items):
    if RUN_E2E:
        return
    skip = pytest.mark.skip(reason="set PRINTCHECK_RUN_E2E=1 to run live e2e")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def settings() -> Settings:
    return Settings()


@pytest.fixture(scope="session")
def auth_session(settings):
    # AuthError here aborts the whole suite.
    return DriveAuthenticator(
        settings.credentials_path,
        settings.token_path,
        settings.oauth_scopes,
    ).authenticate()


@pytest.fixture(scope="session")
def fixtures(settings):
    catalog = scenario_fixtures(settings.fixtures_dir, settings.fixture_password)
    for fixture in catalog.values():
        build_fixture_pdf(fixture)
    return catalog


@pytest.fixture(scope="session")
async def shared_folder(settings, auth_session):
    """
    Yield the shared folder id; empty it after every scenario has run.

    Teardown runs even when scenarios failed, and verifies that the folder
    lists zero files afterwards.
    """
    distributor = DriveDistributor(
        settings.drive_folder_id,
        retry_attempts=settings.drive_retry_attempts,
    )
    yield settings.drive_folder_id

    logger.info("Cleaning up Drive folder after all tests")
    await to_thread.run_sync(distributor.cleanup, auth_session)

    remaining = await to_thread.run_sync(
        lambda: list(distributor.list_files(auth_session))
    )
    if remaining:
        raise CleanupError(
            f"Shared folder still lists {len(remaining)} file(s) after cleanup"
        )


@pytest.fixture(scope="session")
async def browser(settings):
    async with async_playwright() as playwright:
        browser_type = getattr(playwright, settings.browser)
        browser = await browser_type.launch(headless=settings.headless)
        yield browser
        await browser.close()


@pytest.fixture(scope="session")
def pipeline(settings, auth_session, shared_folder):
    return PrintPermissionPipeline.from_settings(settings, auth_session)
