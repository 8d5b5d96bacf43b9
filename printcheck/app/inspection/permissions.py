"""
Permission extraction for downloaded artifacts.

Opens the artifact with pikepdf, falling back to the supplied password only
when the document demands one, and decodes the ``/P`` user-access bits into
a PermissionSet.

An unencrypted document has no explicit restriction list and yields the
empty PermissionSet, which means "all permitted". See
``printcheck.app.schemas.permissions`` for the full convention.

Every call is independent: a fresh document handle is opened and always
closed before returning.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pikepdf

from printcheck.app.errors import PasswordRequiredError
from printcheck.app.schemas.permissions import PermissionSet

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

def _open_document(path: Path, password: Optional[str]) -> pikepdf.Pdf:
    """
    Open without a password first; retry with one only on PasswordError.

    Any other open failure propagates unchanged.
    """
    try:
        return pikepdf.open(path)
    except pikepdf.PasswordError as exc:
        if not password:
            raise PasswordRequiredError(
                f"PDF requires a password but none was provided: {path}"
            ) from exc

    logger.info("Password required, retrying with provided password: %s", path)
    return pikepdf.open(path, password=password)


def _extract(pdf: pikepdf.Pdf) -> PermissionSet:
    if not pdf.is_encrypted:
        logger.info("No explicit permissions found, assuming all allowed")
        return PermissionSet.unrestricted()

    return PermissionSet.from_p_value(int(pdf.encryption.P))


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------

def read_permissions(
    path: Path,
    password: Optional[str] = None,
) -> PermissionSet:
    """
    Read the permission flags of the PDF at ``path``.

    Raises:
        PasswordRequiredError:
            The document needs a password and ``password`` is empty.
        pikepdf.PasswordError:
            The supplied password is wrong.
        pikepdf.PdfError:
            The file is not a readable PDF.
    """
    logger.info("Reading PDF permissions: %s", path)

    with _open_document(Path(path), password) as pdf:
        permissions = _extract(pdf)

    if permissions.can_print:
        logger.info("Printing is allowed: %s", path)
    else:
        logger.warning("Printing is NOT allowed: %s", path)

    return permissions


def can_print(permissions: PermissionSet) -> bool:
    """True iff the set is empty (unrestricted) or grants a PRINT-class flag."""
    return permissions.can_print


def log_permission_breakdown(permissions: PermissionSet) -> None:
    """Log every known flag as granted or denied."""
    if permissions.is_unrestricted:
        logger.info("PDF permissions: none declared (all allowed)")
    else:
        logger.info(
            "PDF permissions (raw): %s",
            [int(flag) for flag in permissions.flags],
        )

    for flag, enabled in permissions.breakdown().items():
        logger.info(
            "  %s %s (%d)",
            "allowed" if enabled else "denied ",
            flag.name,
            int(flag),
        )
