from __future__ import annotations

import hashlib
import os
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()


# Hash of the historical default administrator password ("admin123").
DEFAULT_ADMIN_PASSWORD_HASH = hashlib.sha256(b"admin123").hexdigest()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Central configuration for the storefront back-office.

    Values are loaded once from environment variables (with sensible defaults)
    and then exposed via typed properties.
    """

    def __init__(self) -> None:
        # Persistence paths
        self._data_file = Path(
            os.getenv("STOREFRONT_DATA_FILE", "data/database.json")
        )
        self._uploads_dir = Path(
            os.getenv("STOREFRONT_UPLOADS_DIR", "uploads/products")
        )
        self._log_dir = Path(os.getenv("STOREFRONT_LOG_DIR", "logs"))
        self._log_level = os.getenv("STOREFRONT_LOG_LEVEL", "INFO").upper()

        # Sessions and login throttling
        self._session_ttl_hours = float(
            os.getenv("STOREFRONT_SESSION_TTL_HOURS", "24")
        )
        self._sweep_interval_seconds = float(
            os.getenv("STOREFRONT_SWEEP_INTERVAL_SECONDS", "60")
        )
        self._login_window_minutes = float(
            os.getenv("STOREFRONT_LOGIN_WINDOW_MINUTES", "15")
        )
        self._login_max_attempts = int(
            os.getenv("STOREFRONT_LOGIN_MAX_ATTEMPTS", "20")
        )

        # Store / uploads behavior
        self._save_lock_timeout = float(
            os.getenv("STOREFRONT_SAVE_LOCK_TIMEOUT_SECONDS", "30")
        )
        self._max_upload_bytes = int(
            os.getenv("STOREFRONT_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))
        )
        self._strip_legacy_categories = _env_bool(
            "STOREFRONT_STRIP_LEGACY_CATEGORIES", False
        )
        self._cleanup_on_startup = _env_bool("STOREFRONT_CLEANUP_ON_STARTUP", True)

        # Seeded administrator
        self._admin_username = os.getenv("ADMIN_USERNAME", "admin")
        self._admin_password_hash = (
            os.getenv("ADMIN_PASSWORD_HASH") or DEFAULT_ADMIN_PASSWORD_HASH
        )

        # HTTP server
        self._host = os.getenv("HOST", "0.0.0.0")
        self._port = int(os.getenv("PORT", "3000"))

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def data_file(self) -> Path:
        return self._data_file

    @property
    def uploads_dir(self) -> Path:
        return self._uploads_dir

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    @property
    def log_level(self) -> str:
        return self._log_level

    # ------------------------------------------------------------------
    # Sessions / throttling
    # ------------------------------------------------------------------

    @property
    def session_ttl_seconds(self) -> float:
        return self._session_ttl_hours * 3600

    @property
    def sweep_interval_seconds(self) -> float:
        return self._sweep_interval_seconds

    @property
    def login_window_seconds(self) -> float:
        return self._login_window_minutes * 60

    @property
    def login_max_attempts(self) -> int:
        return self._login_max_attempts

    # ------------------------------------------------------------------
    # Store / uploads
    # ------------------------------------------------------------------

    @property
    def save_lock_timeout(self) -> float:
        return self._save_lock_timeout

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    @property
    def strip_legacy_categories(self) -> bool:
        return self._strip_legacy_categories

    @property
    def cleanup_on_startup(self) -> bool:
        return self._cleanup_on_startup

    # ------------------------------------------------------------------
    # Seed administrator / server
    # ------------------------------------------------------------------

    @property
    def admin_username(self) -> str:
        return self._admin_username

    @property
    def admin_password_hash(self) -> str:
        return self._admin_password_hash

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port


settings = Settings()
