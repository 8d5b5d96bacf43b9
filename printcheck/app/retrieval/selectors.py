"""
Viewer UI selector table.

The Drive viewer exposes its controls through localized ``aria-label``
text, so the download flow matches them by label. Labels are kept in a
locale-keyed table that can be replaced from a JSON file when the viewer
UI or the account locale changes, instead of being hardcoded in the flow.

JSON shape (all keys optional, missing keys keep their defaults)::

    {
      "viewer_content": "div.ndfHFb-c4YZDc-cYSp0e-DARUcf-PLDbbf",
      "password_input": "input[type=\\"password\\"]",
      "password_send_labels": {"en": "Submit password"},
      "download_labels": {"en": "Download", "ar": "تنزيل"},
      "download_anyway_text": "Download anyway"
    }
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _aria_label_selector(
    labels: Dict[str, str],
    *,
    contains: bool,
    extra: str = "",
    role: Optional[str] = None,
) -> str:
    op = "*=" if contains else "="
    role_attr = f'[role="{role}"]' if role else ""
    return ", ".join(
        f'div{role_attr}[aria-label{op}"{label}"]{extra}'
        for label in labels.values()
    )


class ViewerSelectors(BaseModel):
    """Locale → label table for the Drive viewer controls."""

    viewer_content: str = "div.ndfHFb-c4YZDc-cYSp0e-DARUcf-PLDbbf"

    password_input: str = 'input[type="password"]'

    password_send_labels: Dict[str, str] = Field(
        default_factory=lambda: {
            "en": "Submit password",
            "ar": "إرسال كلمة المرور",
            "he": "שליחת סיסמה",
        }
    )

    download_labels: Dict[str, str] = Field(
        default_factory=lambda: {
            "en": "Download",
            "ar": "تنزيل",
            "he": "הורדה",
        }
    )

    download_anyway_text: str = "Download anyway"

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("password_send_labels", "download_labels")
    @classmethod
    def labels_not_empty(cls, v: Dict[str, str]) -> Dict[str, str]:
        if not v:
            raise ValueError("Label tables must hold at least one locale.")
        if any('"' in label for label in v.values()):
            raise ValueError("Labels must not contain double quotes.")
        return v

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ViewerSelectors":
        """Defaults, or the table stored at ``path``."""
        if path is None:
            return cls()
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))

    # ------------------------------------------------------------------
    # Compiled selectors
    # ------------------------------------------------------------------

    @property
    def password_send_enabled(self) -> str:
        """Send control in its enabled state."""
        return _aria_label_selector(
            self.password_send_labels,
            contains=False,
            extra='[aria-disabled="false"]',
        )

    @property
    def viewer_download(self) -> str:
        """Download control of the viewer after a password challenge."""
        return _aria_label_selector(
            self.download_labels, contains=False, role="button"
        )

    @property
    def download_any_locale(self) -> str:
        """Download control matched by any label substring."""
        return _aria_label_selector(self.download_labels, contains=True)

    @property
    def download_anyway(self) -> str:
        return f"text={self.download_anyway_text}"
