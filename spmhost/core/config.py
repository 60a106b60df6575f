import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spmhost.artifacts.sizes import parse_size

logger = logging.getLogger(__name__)


def _default_artifacts_path() -> str:
    return os.path.join(os.getcwd(), "artifacts") + os.sep


def _normalise_dir(path: str) -> str:
    """Expand the user home and make sure the path ends with a separator.

    The artifacts location is joined with bare filenames elsewhere, so a
    trailing separator keeps ``/srv/artifacts`` and ``/srv/artifacts/``
    equivalent.
    """
    path = os.path.expanduser(path)
    return path if path.endswith(os.sep) else path + os.sep


@dataclass(frozen=True)
class StorageConfig:
    """Storage settings shared by every request handler.

    Built once by the app factory and never mutated afterwards.
    ``max_size_bytes`` of None means the artifacts directory is unbounded.
    """

    artifacts_path: Path
    max_size_bytes: Optional[int] = None


class Settings(BaseSettings):
    """Server settings loaded from ``SPMHOST_*`` environment variables.

    Sizes are human-readable strings ("500MB", "1.5 GB") and are parsed with
    the same rules as the ``--max-artifacts-size`` command-line option.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SPMHOST_",
        case_sensitive=False,
    )

    # Storage
    artifacts_path: str = _default_artifacts_path()
    max_artifacts_size: Optional[str] = None

    @field_validator("artifacts_path", mode="before")
    @classmethod
    def normalise_artifacts_path(cls, v: str) -> str:
        return _normalise_dir(str(v))

    # Requests above this size are rejected before the body is read.
    max_upload_size: str = "500MB"

    # Rate limiting: SlowAPI format, e.g. "10/minute", "100/hour".
    upload_rate_limit: str = "60/minute"

    # TLS: both files must load for the server to start in HTTPS mode.
    cert_path: str = os.path.join(os.getcwd(), "cert.pem")
    key_path: str = os.path.join(os.getcwd(), "key.pem")

    # Server address used by `spmhost serve`
    host: str = "127.0.0.1"
    port: int = 8080

    # CORS: comma-separated list of allowed origins.
    cors_origins: list[str] = ["*"]

    # Sentry: leave blank to disable error capture.
    sentry_dsn: str = ""

    debug: bool = True

    def max_size_bytes(self) -> Optional[int]:
        """Parse ``max_artifacts_size``; an invalid value disables the limit."""
        if not self.max_artifacts_size:
            return None
        size = parse_size(self.max_artifacts_size)
        if size is None:
            logger.warning(
                "Invalid format for max artifacts size %r. Ignoring limit.",
                self.max_artifacts_size,
            )
        return size

    def max_upload_bytes(self) -> Optional[int]:
        return parse_size(self.max_upload_size)

    def storage_config(self) -> StorageConfig:
        return StorageConfig(
            artifacts_path=Path(self.artifacts_path).resolve(),
            max_size_bytes=self.max_size_bytes(),
        )


def get_settings() -> Settings:
    return Settings()
