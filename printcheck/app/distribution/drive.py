"""
Drive distribution stage.

Uploads fixtures into the shared folder with reader-for-anyone access and
empties that folder at suite teardown.

Every upload resolves to the same shared *folder* URL rather than a
per-file URL, so the retrieval stage has to locate the file by name.

Drive API calls are blocking; async callers run them in a worker thread.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from printcheck.app.errors import CleanupError, UploadError
from printcheck.app.schemas.artifacts import AuthSession, CleanupReport, ShareLink

logger = logging.getLogger(__name__)


FOLDER_URL_TEMPLATE = "https://drive.google.com/drive/folders/{folder_id}"

_TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})

# Failures of a single Drive call, including token refresh and transport.
_DRIVE_ERRORS = (HttpError, OSError, GoogleAuthError, httplib2.HttpLib2Error)


def _is_transient(exc: BaseException) -> bool:
    """Drive signals retryable failures via rate-limit and 5xx statuses."""
    if isinstance(exc, HttpError):
        return exc.resp.status in _TRANSIENT_STATUSES
    return isinstance(
        exc, (ConnectionError, TimeoutError, httplib2.HttpLib2Error)
    )


class DriveDistributor:
    """
    Places fixtures into one shared Drive folder and removes them again.

    Args:
        folder_id:
            Drive id of the shared folder.
        retry_attempts:
            Attempts per API call for transient failures. 1 disables
            retries.
        retry_wait:
            tenacity wait strategy between attempts.
    """

    def __init__(
        self,
        folder_id: str,
        *,
        retry_attempts: int = 3,
        retry_wait: Optional[wait_base] = None,
    ) -> None:
        self.folder_id = folder_id
        self.retry_attempts = retry_attempts
        self.retry_wait = retry_wait or wait_exponential(min=1, max=10)

    @property
    def folder_url(self) -> str:
        return FOLDER_URL_TEMPLATE.format(folder_id=self.folder_id)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def upload(self, session: AuthSession, local_path: Path) -> ShareLink:
        """
        Upload a PDF into the shared folder and make it publicly readable.

        Raises:
            UploadError:
                The local file is missing, Drive rejected the write or the
                permission grant, or no file id was returned.
        """
        path = Path(local_path)
        if not path.is_file():
            raise UploadError(
                f'Upload failed for file "{path}": File not found: {path}'
            )

        drive = session.service
        metadata = {"name": path.name, "parents": [self.folder_id]}

        try:
            media = MediaFileUpload(str(path), mimetype="application/pdf")
            # Not retried: a repeated create can leave a duplicate behind.
            created = (
                drive.files()
                .create(body=metadata, media_body=media, fields="id")
                .execute()
            )

            file_id = (created or {}).get("id")
            if not file_id:
                raise UploadError(
                    f'Upload failed for file "{path}": '
                    "File uploaded but no ID returned by Drive API"
                )

            self._execute(
                lambda: drive.permissions()
                .create(
                    fileId=file_id,
                    body={"role": "reader", "type": "anyone"},
                )
                .execute()
            )
        except _DRIVE_ERRORS as exc:
            raise UploadError(
                f'Upload failed for file "{path}": {exc}'
            ) from exc

        logger.info(
            "Uploaded %s as %s into folder %s",
            path.name,
            file_id,
            self.folder_id,
        )

        return ShareLink(
            url=self.folder_url,
            folder_id=self.folder_id,
            file_id=file_id,
            file_name=path.name,
        )

    def list_files(
        self,
        session: AuthSession,
        folder_id: Optional[str] = None,
    ) -> Iterator[Dict[str, str]]:
        """Yield ``{"id", "name"}`` for every non-trashed child, page by page."""
        folder_id = folder_id or self.folder_id
        drive = session.service
        page_token: Optional[str] = None

        while True:
            response = self._execute(
                lambda: drive.files()
                .list(
                    q=f"'{folder_id}' in parents and trashed = false",
                    fields="nextPageToken, files(id, name)",
                    spaces="drive",
                    pageToken=page_token,
                )
                .execute()
            )

            for item in response.get("files") or []:
                yield item

            page_token = response.get("nextPageToken")
            if not page_token:
                break

    def cleanup(
        self,
        session: AuthSession,
        folder_id: Optional[str] = None,
    ) -> CleanupReport:
        """
        Delete every non-trashed child of the shared folder.

        Best-effort: every deletion is attempted; failures are collected
        and reported together.

        Raises:
            CleanupError:
                Listing failed, or at least one deletion failed. The
                exception carries the CleanupReport.
        """
        folder_id = folder_id or self.folder_id
        report = CleanupReport(folder_id=folder_id)
        drive = session.service

        try:
            # Materialize first so deletions do not shift the page cursor.
            items = list(self.list_files(session, folder_id))
        except _DRIVE_ERRORS as exc:
            raise CleanupError(
                f"Failed to cleanup folder {folder_id}: {exc}",
                report=report,
            ) from exc

        for item in items:
            file_id, name = item["id"], item.get("name", "")
            logger.info("Deleting file: %s (%s)", name, file_id)
            try:
                self._execute(
                    lambda: drive.files().delete(fileId=file_id).execute()
                )
            except _DRIVE_ERRORS as exc:
                logger.error("Failed to delete %s (%s): %s", name, file_id, exc)
                report.failures.append((file_id, name, str(exc)))
                continue
            report.deleted.append((file_id, name))

        if report.failures:
            raise CleanupError(
                f"Failed to cleanup folder {folder_id}: "
                f"{len(report.failures)} of {len(items)} deletions failed",
                report=report,
            )

        logger.info("Cleanup completed for folder: %s", folder_id)
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _execute(self, call: Callable[[], Any]) -> Any:
        """Run an idempotent Drive call, retrying transient failures."""
        retryer = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        return retryer(call)
