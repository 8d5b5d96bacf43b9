"""
Tests for permission extraction from downloaded artifacts.

Coverage matrix:

  Unencrypted PDF                       → empty set, can_print (unrestricted)
  Password PDF, print bits cleared      → explicit list, no PRINT-class flag
  Password PDF, all bits granted        → PRINT and PRINT_HIGH_QUALITY present
  Owner-password-only PDF               → opens without password, explicit list
  Low-resolution print only             → PRINT without PRINT_HIGH_QUALITY
  Password PDF, no password supplied    → PasswordRequiredError
  Password PDF, wrong password          → pikepdf.PasswordError propagates
  Non-PDF bytes                         → pikepdf.PdfError propagates
  Document handle                       → always closed
"""

from unittest.mock import patch

import pikepdf
import pytest

from printcheck.app.errors import PasswordRequiredError
from printcheck.app.inspection.permissions import can_print, read_permissions
from printcheck.app.schemas.permissions import PermissionFlag, PermissionSet
from printcheck.tests.fixtures.pdf_factory import (
    encrypted_pdf,
    lowres_print_only,
    print_denied,
    unencrypted_pdf,
)


PASSWORD = "Owner123"


# ---------------------------------------------------------------------------
# No explicit restriction list
# ---------------------------------------------------------------------------

def test_unencrypted_pdf_yields_empty_unrestricted_set(tmp_path):
    path = unencrypted_pdf(tmp_path / "printable.pdf")

    permissions = read_permissions(path)

    assert permissions == PermissionSet.unrestricted()
    assert permissions.is_unrestricted
    assert can_print(permissions) is True


def test_unencrypted_pdf_ignores_supplied_password(tmp_path):
    path = unencrypted_pdf(tmp_path / "printable.pdf")

    assert read_permissions(path, password=PASSWORD).is_unrestricted


# ---------------------------------------------------------------------------
# Explicit permission lists
# ---------------------------------------------------------------------------

def test_print_denied_pdf_has_explicit_list_without_print(tmp_path):
    path = encrypted_pdf(tmp_path / "no_print_permission.pdf", allow=print_denied())

    permissions = read_permissions(path, password=PASSWORD)

    assert not permissions.is_unrestricted
    assert PermissionFlag.PRINT not in permissions
    assert PermissionFlag.PRINT_HIGH_QUALITY not in permissions
    assert PermissionFlag.COPY in permissions
    assert can_print(permissions) is False


def test_fully_granted_password_pdf_can_print(tmp_path):
    path = encrypted_pdf(tmp_path / "printable_with_password.pdf")

    permissions = read_permissions(path, password=PASSWORD)

    assert PermissionFlag.PRINT in permissions
    assert PermissionFlag.PRINT_HIGH_QUALITY in permissions
    assert can_print(permissions) is True


def test_lowres_print_alone_counts_as_printable(tmp_path):
    path = encrypted_pdf(tmp_path / "lowres.pdf", allow=lowres_print_only())

    permissions = read_permissions(path, password=PASSWORD)

    assert PermissionFlag.PRINT in permissions
    assert PermissionFlag.PRINT_HIGH_QUALITY not in permissions
    assert can_print(permissions) is True


def test_owner_only_pdf_opens_without_password(tmp_path):
    """Empty user password: no challenge, but /P is still explicit."""
    path = encrypted_pdf(
        tmp_path / "owner_only.pdf", user="", allow=print_denied()
    )

    permissions = read_permissions(path)

    assert not permissions.is_unrestricted
    assert can_print(permissions) is False


def test_flags_are_returned_in_bit_order(tmp_path):
    path = encrypted_pdf(tmp_path / "all.pdf")

    flags = read_permissions(path, password=PASSWORD).flags

    assert list(flags) == sorted(flags)


# ---------------------------------------------------------------------------
# Password handling
# ---------------------------------------------------------------------------

def test_password_pdf_without_password_raises(tmp_path):
    path = encrypted_pdf(tmp_path / "locked.pdf", allow=print_denied())

    with pytest.raises(PasswordRequiredError, match="requires a password"):
        read_permissions(path)


def test_password_pdf_with_empty_password_raises(tmp_path):
    path = encrypted_pdf(tmp_path / "locked.pdf")

    with pytest.raises(PasswordRequiredError):
        read_permissions(path, password="")


def test_wrong_password_propagates_pikepdf_error(tmp_path):
    path = encrypted_pdf(tmp_path / "locked.pdf")

    with pytest.raises(pikepdf.PasswordError):
        read_permissions(path, password="not-the-password")


# ---------------------------------------------------------------------------
# Other open failures propagate unchanged
# ---------------------------------------------------------------------------

def test_non_pdf_propagates_pdf_error(tmp_path):
    path = tmp_path / "not_a_pdf.pdf"
    path.write_bytes(b"not a pdf")

    with pytest.raises(pikepdf.PdfError):
        read_permissions(path)


def test_missing_file_propagates(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_permissions(tmp_path / "missing.pdf")


# ---------------------------------------------------------------------------
# Handle release
# ---------------------------------------------------------------------------

def test_document_handle_is_closed():
    with patch("pikepdf.open") as mock_open:
        mock_pdf = mock_open.return_value.__enter__.return_value
        mock_pdf.is_encrypted = True
        mock_pdf.encryption.P = int(PermissionFlag.PRINT | PermissionFlag.COPY)

        permissions = read_permissions("whatever.pdf")

    mock_open.return_value.__exit__.assert_called_once()
    assert permissions.flags == (PermissionFlag.PRINT, PermissionFlag.COPY)
