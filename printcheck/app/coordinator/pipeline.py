"""
Print-permission verification pipeline.

Runs one fixture through the three stages, strictly in order:

    Distribution (upload) → Retrieval (viewer download)
        → Inspection (permission bits) → verdict

Stage failures propagate as their stage-specific errors; the pipeline adds
no retries. Blocking Drive and pikepdf calls run in a worker thread so the
browser event loop is never stalled.

The browser context opened for a fixture is always closed, whether or not
the fixture passed.
"""

from __future__ import annotations

import functools
import logging

from anyio import to_thread
from playwright.async_api import Browser

from printcheck.app.config import Settings
from printcheck.app.distribution.drive import DriveDistributor
from printcheck.app.inspection.permissions import (
    log_permission_breakdown,
    read_permissions,
)
from printcheck.app.retrieval.downloader import DriveViewerDownloader
from printcheck.app.retrieval.selectors import ViewerSelectors
from printcheck.app.schemas.artifacts import (
    AuthSession,
    Fixture,
    VerificationResult,
)

logger = logging.getLogger(__name__)


class PrintPermissionPipeline:
    """
    Verifies one fixture at a time against a shared AuthSession.

    The session is read-only here; concurrent pipelines may share it.
    """

    def __init__(
        self,
        session: AuthSession,
        distributor: DriveDistributor,
        downloader: DriveViewerDownloader,
    ) -> None:
        self._session = session
        self._distributor = distributor
        self._downloader = downloader

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session: AuthSession,
    ) -> "PrintPermissionPipeline":
        distributor = DriveDistributor(
            settings.drive_folder_id,
            retry_attempts=settings.drive_retry_attempts,
        )
        downloader = DriveViewerDownloader(
            settings.download_dir,
            selectors=ViewerSelectors.load(settings.selectors_path),
            timeouts=settings.retrieval_timeouts,
        )
        return cls(session, distributor, downloader)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def verify(
        self,
        browser: Browser,
        fixture: Fixture,
    ) -> VerificationResult:
        logger.info("Verifying fixture %s", fixture.name)

        share_link = await to_thread.run_sync(
            self._distributor.upload, self._session, fixture.local_path
        )

        context = await browser.new_context(accept_downloads=True)
        try:
            page = await context.new_page()
            artifact = await self._downloader.download(
                context,
                page,
                share_link,
                fixture.name,
                fixture.password_value,
            )
        finally:
            await context.close()
            logger.info("Browser context closed")

        permissions = await to_thread.run_sync(
            functools.partial(
                read_permissions,
                artifact.path,
                password=fixture.password_value,
            )
        )
        log_permission_breakdown(permissions)

        result = VerificationResult(
            fixture_name=fixture.name,
            expected_printable=fixture.expected_printable,
            share_link=share_link,
            artifact=artifact,
            permissions=permissions,
        )
        logger.info(
            "Fixture %s: can_print=%s expected=%s",
            fixture.name,
            result.can_print,
            fixture.expected_printable,
        )
        return result
