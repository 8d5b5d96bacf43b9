"""
Retrieval stage: download a shared fixture through the Drive web viewer.

The flow is a fixed sequence over one browser context:

    navigate → locate → open in new tab → [password challenge] →
    verify render → download → persist

Each step waits on a bounded condition (see RetrievalTimeouts). An unmet
condition raises the stage-specific error for that step and aborts the
retrieval; nothing is retried here.

Optional probes (password input, "Download anyway" interstitial) are the
only waits whose timeout is an expected outcome rather than a failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import (
    BrowserContext,
    Download,
    Locator,
    Page,
    TimeoutError as PlaywrightTimeoutError,
)

from printcheck.app.config import RetrievalTimeouts
from printcheck.app.errors import (
    DownloadError,
    FileNotFoundInFolderError,
    PasswordChallengeError,
    RenderError,
)
from printcheck.app.retrieval.selectors import ViewerSelectors
from printcheck.app.schemas.artifacts import DownloadedArtifact, ShareLink

logger = logging.getLogger(__name__)


async def _visible_within(locator: Locator, timeout_ms: int) -> bool:
    try:
        await locator.wait_for(state="visible", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        return False
    return True


class DriveViewerDownloader:
    """
    Drives the Drive folder view and file viewer to download one file.

    Args:
        download_dir:
            Destination directory, created on first use.
        selectors:
            Viewer label table.
        timeouts:
            Bounds for every wait.
    """

    def __init__(
        self,
        download_dir: Path,
        *,
        selectors: Optional[ViewerSelectors] = None,
        timeouts: Optional[RetrievalTimeouts] = None,
    ) -> None:
        self.download_dir = Path(download_dir)
        self.selectors = selectors or ViewerSelectors()
        self.timeouts = timeouts or RetrievalTimeouts()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def download(
        self,
        context: BrowserContext,
        page: Page,
        share_link: ShareLink,
        file_name: str,
        password: Optional[str] = None,
    ) -> DownloadedArtifact:
        logger.info("Navigating to shared folder URL: %s", share_link.url)
        await page.goto(share_link.url)
        await page.wait_for_load_state("networkidle")

        popup = await self._open_file(context, page, file_name)

        password_input = popup.locator(self.selectors.password_input).first
        if await _visible_within(password_input, self.timeouts.password_probe):
            if not password:
                raise PasswordChallengeError(
                    f"Viewer asked for a password for {file_name!r} "
                    "but none was provided"
                )
            download = await self._download_with_password(
                context, popup, password_input, password
            )
        else:
            download = await self._download_without_password(popup)

        return await self._persist(download)

    async def check_rendered(self, page: Page) -> None:
        """
        Verify the viewer rendered document content.

        Raises:
            RenderError: content not visible within the render bound.
        """
        await page.wait_for_timeout(self.timeouts.render_settle)
        content = page.locator(self.selectors.viewer_content).first
        try:
            await content.wait_for(timeout=self.timeouts.render_visible)
        except PlaywrightTimeoutError as exc:
            raise RenderError(
                "PDF content did not load or is not visible"
            ) from exc
        logger.info("PDF loaded successfully")

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _open_file(
        self,
        context: BrowserContext,
        page: Page,
        file_name: str,
    ) -> Page:
        entry = page.get_by_text(file_name, exact=True).first
        try:
            await entry.wait_for(
                state="visible", timeout=self.timeouts.locate_file
            )
        except PlaywrightTimeoutError as exc:
            raise FileNotFoundInFolderError(
                f"File {file_name!r} not visible in shared folder"
            ) from exc

        async with context.expect_page() as popup_info:
            await entry.click(button="middle")
        popup = await popup_info.value

        await popup.wait_for_load_state("networkidle")
        logger.info("Opened %s in a new tab", file_name)
        return popup

    async def _download_with_password(
        self,
        context: BrowserContext,
        popup: Page,
        password_input: Locator,
        password: str,
    ) -> Download:
        logger.info("Password input detected, entering password")

        await password_input.fill(password)
        await password_input.press("Enter")
        await popup.wait_for_timeout(self.timeouts.password_settle)

        send_button = popup.locator(self.selectors.password_send_enabled).first
        try:
            await send_button.wait_for(
                state="visible",
                timeout=self.timeouts.password_send_enabled,
            )
            async with popup.expect_navigation(wait_until="networkidle"):
                await send_button.click()
        except PlaywrightTimeoutError as exc:
            raise PasswordChallengeError(
                "Password send control never became enabled"
            ) from exc

        await self.check_rendered(popup)

        download_button = popup.locator(self.selectors.viewer_download).first
        try:
            await download_button.wait_for(
                timeout=self.timeouts.download_control
            )
            async with context.expect_page() as new_page_info:
                await download_button.click()
            logger.info("Download button clicked")
            new_page = await new_page_info.value
            await new_page.wait_for_load_state()
            logger.info("Download page opened")

            async with new_page.expect_download(
                timeout=self.timeouts.download_event
            ) as download_info:
                anyway = new_page.locator(self.selectors.download_anyway).first
                if await _visible_within(
                    anyway, self.timeouts.download_anyway_probe
                ):
                    await anyway.click()
                    logger.info('"Download anyway" button clicked')
            return await download_info.value
        except PlaywrightTimeoutError as exc:
            raise DownloadError(
                "Viewer download did not start after password challenge"
            ) from exc

    async def _download_without_password(self, popup: Page) -> Download:
        await self.check_rendered(popup)

        download_button = popup.locator(
            self.selectors.download_any_locale
        ).first
        try:
            await download_button.wait_for(
                timeout=self.timeouts.download_control_no_password
            )
            logger.info("Initiating download")
            async with popup.expect_download(
                timeout=self.timeouts.download_event
            ) as download_info:
                await download_button.click()
            return await download_info.value
        except PlaywrightTimeoutError as exc:
            raise DownloadError("Viewer download did not start") from exc

    async def _persist(self, download: Download) -> DownloadedArtifact:
        self.download_dir.mkdir(parents=True, exist_ok=True)
        suggested = download.suggested_filename
        target = self.download_dir / suggested
        await download.save_as(target)

        logger.info("Download complete: %s", target)
        return DownloadedArtifact(path=target, suggested_filename=suggested)
