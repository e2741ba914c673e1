"""
Metabase API configuration

Reads the target database, base URL and session cookie from the environment
once at startup and freezes them into a MetabaseConfig that is passed to the
server explicitly.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Dict

from .errors import StartupConfigurationError

DATABASE_ID_ENV = "METABASE_DATABASE_ID"
HOST_ENV = "METABASE_HOST"
COOKIES_ENV = "METABASE_COOKIES"

# Seconds from request start until the response body has been read
REQUEST_TIMEOUT_SECONDS = 120.0

DATASET_ENDPOINT = "/api/dataset"


@dataclass(frozen=True)
class MetabaseConfig:
    """Immutable startup configuration for the query bridge."""

    database_id: int
    base_url: str
    # Opaque session cookie, sent verbatim and never logged
    cookies: str = field(repr=False)
    timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def dataset_url(self) -> str:
        return f"{self.base_url}{DATASET_ENDPOINT}"

    def headers(self) -> Dict[str, str]:
        """Headers for every dataset request; the cookie goes out unmodified."""
        return {
            "Content-Type": "application/json",
            "Cookie": self.cookies
        }


def get_metabase_config(environ: Optional[Mapping[str, str]] = None) -> MetabaseConfig:
    """
    Build the Metabase configuration from environment variables.

    Args:
        environ: Mapping to read from, defaults to os.environ

    Returns:
        Frozen MetabaseConfig

    Raises:
        StartupConfigurationError: If a required variable is missing or the
            database id is not an integer
    """
    if environ is None:
        environ = os.environ

    database_id_raw = environ.get(DATABASE_ID_ENV, "").strip()
    base_url = environ.get(HOST_ENV, "").strip()
    cookies = environ.get(COOKIES_ENV, "")

    missing = []
    if not database_id_raw:
        missing.append(DATABASE_ID_ENV)
    if not base_url:
        missing.append(HOST_ENV)
    if not cookies:
        missing.append(COOKIES_ENV)

    if missing:
        raise StartupConfigurationError(
            f"Metabase API not configured. Please set {', '.join(missing)} environment variables.",
            missing=missing
        )

    try:
        database_id = int(database_id_raw)
    except ValueError:
        raise StartupConfigurationError(
            f"{DATABASE_ID_ENV} must be an integer, got {database_id_raw!r}"
        ) from None

    return MetabaseConfig(
        database_id=database_id,
        base_url=base_url.rstrip("/"),
        cookies=cookies
    )
