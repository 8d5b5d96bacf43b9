"""
Workflow transport objects.

One Fixture flows through the pipeline as:

    Fixture → ShareLink → DownloadedArtifact → PermissionSet
            → VerificationResult

All models are frozen once constructed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from printcheck.app.schemas.permissions import PermissionSet


class Fixture(BaseModel):
    """A source PDF with a known expected printability."""

    name: str = Field(..., min_length=1)
    local_path: Path
    password: Optional[SecretStr] = None
    expected_printable: bool

    model_config = ConfigDict(frozen=True)

    @property
    def password_value(self) -> Optional[str]:
        return self.password.get_secret_value() if self.password else None


class ShareLink(BaseModel):
    """
    Publicly readable location of an uploaded fixture.

    ``url`` is the shared folder URL, identical for every upload into the
    same folder. The file itself has to be located by ``file_name``.
    """

    url: str
    folder_id: str
    file_id: str
    file_name: str

    model_config = ConfigDict(frozen=True)


class DownloadedArtifact(BaseModel):
    """Bytes retrieved through the viewer, persisted locally."""

    path: Path
    suggested_filename: str

    model_config = ConfigDict(frozen=True)


class AuthSession(BaseModel):
    """
    Authenticated Drive handle.

    Obtained once in suite setup and passed explicitly to every
    distribution call. Read-only after construction.
    """

    credentials: Any
    service: Any

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class CleanupReport(BaseModel):
    """Outcome of emptying the shared folder."""

    folder_id: str
    deleted: List[Tuple[str, str]] = Field(default_factory=list)
    failures: List[Tuple[str, str, str]] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class VerificationResult(BaseModel):
    """Per-fixture verdict produced by the pipeline."""

    fixture_name: str
    expected_printable: bool
    share_link: ShareLink
    artifact: DownloadedArtifact
    permissions: PermissionSet

    model_config = ConfigDict(frozen=True)

    @property
    def can_print(self) -> bool:
        return self.permissions.can_print

    @property
    def matches_expectation(self) -> bool:
        return self.can_print == self.expected_printable
