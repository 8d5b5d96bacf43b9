"""
Fixture catalog.

The three scenarios the suite verifies, plus a pikepdf builder that
materializes their source PDFs when the fixtures directory does not
already hold them.

Scenario matrix:

  no_print_permission.pdf       password    print bits cleared  → not printable
  printable.pdf                 none        not encrypted       → printable
  printable_with_password.pdf   password    all bits granted    → printable
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import pikepdf
from pikepdf import Dictionary, Name
from pydantic import SecretStr

from printcheck.app.schemas.artifacts import Fixture

logger = logging.getLogger(__name__)


NO_PRINT_PERMISSION = "no_print_permission.pdf"
PRINTABLE = "printable.pdf"
PRINTABLE_WITH_PASSWORD = "printable_with_password.pdf"


def scenario_fixtures(
    fixtures_dir: Path,
    password: Optional[SecretStr],
) -> Dict[str, Fixture]:
    """Scenario fixtures keyed by file name."""
    fixtures_dir = Path(fixtures_dir)
    return {
        NO_PRINT_PERMISSION: Fixture(
            name=NO_PRINT_PERMISSION,
            local_path=fixtures_dir / NO_PRINT_PERMISSION,
            password=password,
            expected_printable=False,
        ),
        PRINTABLE: Fixture(
            name=PRINTABLE,
            local_path=fixtures_dir / PRINTABLE,
            password=None,
            expected_printable=True,
        ),
        PRINTABLE_WITH_PASSWORD: Fixture(
            name=PRINTABLE_WITH_PASSWORD,
            local_path=fixtures_dir / PRINTABLE_WITH_PASSWORD,
            password=password,
            expected_printable=True,
        ),
    }


def build_fixture_pdf(fixture: Fixture, *, overwrite: bool = False) -> Path:
    """
    Write the fixture's source PDF to ``fixture.local_path``.

    A password-bearing fixture is encrypted with that password as both
    user and owner password, so the viewer challenges for it. Printing is
    denied in the permission bits when the fixture is expected to be
    unprintable. A fixture without a password is saved unencrypted.
    """
    path = Path(fixture.local_path)
    if path.exists() and not overwrite:
        return path

    path.parent.mkdir(parents=True, exist_ok=True)
    password = fixture.password_value

    with pikepdf.new() as pdf:
        page = pdf.add_blank_page(page_size=(595, 842))
        font = pdf.make_indirect(
            Dictionary(
                Type=Name.Font,
                Subtype=Name.Type1,
                BaseFont=Name.Helvetica,
            )
        )
        page.obj.Resources = Dictionary(Font=Dictionary(F1=font))
        page.obj.Contents = pdf.make_stream(
            b"BT /F1 24 Tf 72 720 Td ("
            + fixture.name.encode("ascii")
            + b") Tj ET"
        )
        pdf.docinfo["/Title"] = fixture.name

        if password:
            allow = pikepdf.Permissions(
                print_lowres=fixture.expected_printable,
                print_highres=fixture.expected_printable,
            )
            pdf.save(
                path,
                encryption=pikepdf.Encryption(
                    owner=password, user=password, allow=allow
                ),
            )
        else:
            pdf.save(path)

    logger.info("Materialized fixture %s at %s", fixture.name, path)
    return path
