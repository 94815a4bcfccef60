import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .errors import ConfigurationError

ENV_SERVICE_ACCOUNT = "TASKIDS_SERVICE_ACCOUNT"
ENV_DATABASE_URL = "TASKIDS_DATABASE_URL"
ENV_LOG_LEVEL = "TASKIDS_LOG_LEVEL"

REMOTE_SCHEMES = ("http", "https")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env() -> None:
    """Load .env from the working directory if present. Existing variables win."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def is_remote(database_url: str) -> bool:
    return urlparse(database_url).scheme in REMOTE_SCHEMES


@dataclass
class Settings:
    database_url: Optional[str] = None
    service_account: Optional[Path] = None
    dry_run: bool = False
    derive_from_key: bool = False
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @classmethod
    def resolve(
        cls,
        database_url: Optional[str] = None,
        service_account: Optional[str] = None,
        log_level: Optional[str] = None,
        **kwargs,
    ) -> "Settings":
        """Command-line values first, then environment variables."""
        sa = service_account or os.getenv(ENV_SERVICE_ACCOUNT)
        return cls(
            database_url=database_url or os.getenv(ENV_DATABASE_URL),
            service_account=Path(sa) if sa else None,
            log_level=(log_level or os.getenv(ENV_LOG_LEVEL) or "INFO").upper(),
            **kwargs,
        )

    def validate(self, require_credentials: bool = True) -> None:
        """
        Check parameters before any store is opened.

        Raises:
            ConfigurationError: If a parameter is missing or invalid
        """
        if not self.database_url:
            raise ConfigurationError("--database-url is required")
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.log_level}")

        parsed = urlparse(self.database_url)
        if parsed.scheme in REMOTE_SCHEMES:
            if not parsed.netloc:
                raise ConfigurationError(f"Invalid database URL: {self.database_url}")
            if require_credentials and self.service_account is None:
                raise ConfigurationError("--service-account is required for a remote database")
        else:
            path = self.local_path()
            if not path.is_file():
                raise ConfigurationError(f"Database file not found: {path}")

        if self.service_account is not None and not self.service_account.exists():
            raise ConfigurationError(f"serviceAccount file not found: {self.service_account}")

    def local_path(self) -> Path:
        """
        File backing a local store URL.

        sqlite:///relative.db, sqlite:////absolute.db, file://path.json or a
        bare *.json path.

        Raises:
            ConfigurationError: If the URL does not name a local store
        """
        url = self.database_url or ""
        parsed = urlparse(url)
        if parsed.scheme == "sqlite":
            path = url[len("sqlite:///"):] if url.startswith("sqlite:///") else ""
        elif parsed.scheme == "file":
            path = parsed.netloc + parsed.path
        elif url.endswith(".json"):
            path = url
        else:
            raise ConfigurationError(
                f"Unsupported database URL: {url} "
                "(use https://..., sqlite:///path.db or a .json file)"
            )
        if not path:
            raise ConfigurationError(f"Invalid database URL: {url}")
        return Path(path)
