"""
Stage-specific failures of the print-permission workflow.

Every stage wraps lower-level failures (Drive API, Playwright, pikepdf)
into one of these classes with a stage-identifying message and re-raises
with the original exception chained. Nothing here is retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from printcheck.app.schemas.artifacts import CleanupReport


class PrintCheckError(RuntimeError):
    """Base class for all workflow failures."""


# ------------------------------------------------------------------
# Distribution stage
# ------------------------------------------------------------------

class AuthError(PrintCheckError):
    """Credential load, token parse or token exchange failed. Fatal for the suite."""


class UploadError(PrintCheckError):
    """The fixture could not be uploaded or shared."""


class CleanupError(PrintCheckError):
    """
    Raised when the shared folder could not be emptied.

    ``report`` holds every deletion attempted so far, including the
    successful ones, so callers can see which remote files were left behind.
    """

    def __init__(
        self,
        message: str,
        report: Optional["CleanupReport"] = None,
    ) -> None:
        super().__init__(message)
        self.report = report


# ------------------------------------------------------------------
# Retrieval stage
# ------------------------------------------------------------------

class FileNotFoundInFolderError(PrintCheckError, FileNotFoundError):
    """The named file never became visible in the shared folder view."""


class RenderError(PrintCheckError):
    """The viewer opened but never rendered document content."""


class PasswordChallengeError(PrintCheckError):
    """The viewer's password challenge could not be completed."""


class DownloadError(PrintCheckError):
    """The viewer download control or download event never arrived."""


# ------------------------------------------------------------------
# Inspection stage
# ------------------------------------------------------------------

class PasswordRequiredError(PrintCheckError):
    """The document is password protected and no password was supplied."""
