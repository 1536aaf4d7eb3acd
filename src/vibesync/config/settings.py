"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from ..gateway.firestore import DEFAULT_BASE_URL


class Settings(BaseSettings):
    """Application settings."""

    project_root: Path = Field(
        default=Path(),
        description="Directory containing vibesync.yml",
    )

    firestore_project: str | None = Field(
        default=None,
        description="Google Cloud project id of the Firestore database",
    )

    database: str = Field(
        default="(default)",
        description="Firestore database id",
    )

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Firestore REST endpoint (point at the emulator for local runs)",
    )

    api_key: str | None = Field(
        default=None,
        description="Web API key sent with every request",
    )

    token: str | None = Field(
        default=None,
        description="Bearer token (Firebase ID token or OAuth access token)",
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2=DEBUG, 3+=DEBUG plus HTTP requests)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "VIBESYNC_",
    }
