"""
Centralized configuration for the print-permission verification suite.

Pydantic v2 settings management: every path, identifier and timeout the
workflow depends on is read once from the environment (prefix
``PRINTCHECK_``) or a local ``.env`` file and is immutable afterwards.

The fixture password is held as a ``SecretStr`` so it never appears in
logs or assertion output.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DRIVE_FILE_SCOPE = "https://www.googleapis.com/auth/drive.file"


# -------------------------------------------------------------------------
# Reusable Type Aliases
# -------------------------------------------------------------------------

Milliseconds = Annotated[
    int,
    Field(ge=0, le=600_000, description="Bounded wait in milliseconds"),
]

# Drive file and folder ids are URL-safe base64-ish tokens.
DriveFolderID = Annotated[
    str,
    Field(
        pattern=r"^[A-Za-z0-9_-]{10,128}$",
        description="Google Drive folder id of the shared upload folder",
    ),
]


# -------------------------------------------------------------------------
# Retrieval timeouts
# -------------------------------------------------------------------------

class RetrievalTimeouts(BaseModel):
    """
    Upper bounds for every suspension point of the viewer download flow.

    Each value converts an otherwise indefinite browser wait into an
    explicit stage failure.
    """

    locate_file: Milliseconds = 60_000
    password_probe: Milliseconds = 3_000
    password_settle: Milliseconds = 500
    password_send_enabled: Milliseconds = 5_000
    render_settle: Milliseconds = 5_000
    render_visible: Milliseconds = 15_000
    download_control: Milliseconds = 10_000
    download_control_no_password: Milliseconds = 15_000
    download_anyway_probe: Milliseconds = 5_000
    download_event: Milliseconds = 30_000

    model_config = ConfigDict(frozen=True, extra="forbid")


# -------------------------------------------------------------------------
# Settings Model
# -------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Suite settings parsed from the environment.

    Fails fast at suite setup if a path or identifier is malformed.
    """

    # ---------------------------------------------------------------------
    # Google Drive credentials
    # ---------------------------------------------------------------------

    credentials_path: Path = Field(
        Path("credentials.json"),
        description="OAuth client secrets (installed application JSON)",
    )

    token_path: Path = Field(
        Path("token.json"),
        description="Persisted OAuth token, written after interactive consent",
    )

    oauth_scopes: List[str] = Field(
        default_factory=lambda: [DRIVE_FILE_SCOPE],
        description="OAuth scopes requested for the Drive session",
    )

    drive_folder_id: DriveFolderID = "11DQ3aYC90myC2AKXbPwzjPRn6_4tATmZ"

    drive_retry_attempts: Annotated[
        int,
        Field(
            default=3,
            ge=1,
            le=10,
            description=(
                "Attempts per Drive API call for transient failures "
                "(1 disables retries)"
            ),
        ),
    ]

    # ---------------------------------------------------------------------
    # Local filesystem
    # ---------------------------------------------------------------------

    fixtures_dir: Path = Field(
        Path("pdfs"),
        description="Directory holding the source fixture PDFs",
    )

    download_dir: Path = Field(
        Path("downloads"),
        description="Directory receiving downloaded artifacts",
    )

    fixture_password: SecretStr = Field(
        SecretStr("Owner123"),
        description="Password of the password-protected fixtures",
    )

    # ---------------------------------------------------------------------
    # Browser
    # ---------------------------------------------------------------------

    browser: str = Field("chromium", description="Playwright browser type")

    headless: bool = Field(True, description="Run the browser headless")

    selectors_path: Optional[Path] = Field(
        None,
        description=(
            "Optional JSON file replacing the default viewer selector table"
        ),
    )

    retrieval_timeouts: RetrievalTimeouts = Field(
        default_factory=RetrievalTimeouts,
    )

    # ---------------------------------------------------------------------
    # Test surface
    # ---------------------------------------------------------------------

    test_timeout_ms: Milliseconds = 120_000

    model_config = SettingsConfigDict(
        env_prefix="PRINTCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    # ---------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ---------------------------------------------------------------------

    @field_validator("browser")
    @classmethod
    def validate_browser(cls, v: str) -> str:
        allowed = {"chromium", "firefox", "webkit"}
        if v not in allowed:
            raise ValueError(
                f"Unsupported browser '{v}'. "
                f"Allowed values: {sorted(allowed)}"
            )
        return v

    @field_validator("oauth_scopes")
    @classmethod
    def scopes_not_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one OAuth scope must be configured.")
        return v

    @field_validator("selectors_path")
    @classmethod
    def selectors_file_exists(cls, v: Optional[Path]) -> Optional[Path]:
        if v is not None and not v.is_file():
            raise ValueError(
                f"Configured selectors_path is not a file: {v}"
            )
        return v

    # ---------------------------------------------------------------------
    # Derived values
    # ---------------------------------------------------------------------

    @property
    def test_timeout_seconds(self) -> float:
        return self.test_timeout_ms / 1000


# -------------------------------------------------------------------------
# Settings Provider
# -------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Settings provider for the suite.

    Parsed once per process; tests that need different values construct
    ``Settings`` directly.
    """
    return Settings()
