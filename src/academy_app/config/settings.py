from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[3]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

DOCUMENTS_PATH = Path(os.path.expanduser("~")) / "Documents"
DEFAULT_APP_NAME = "ZAT Initiative"
DEFAULT_STORAGE_KEY = "zat_initiative_data_v2"
DEFAULT_AUTH_KEY = "zat_initiative_auth"

# Hardcoded admin pair of the original tool. Not a security boundary.
DEFAULT_ADMIN_EMAIL = "admin@zat.org"
DEFAULT_ADMIN_PASSWORD = "zat2024"


def _default_data_dir(app_name: str) -> Path:
    return Path(os.getenv("ACADEMY_DATA_DIR", str(DOCUMENTS_PATH / app_name))).expanduser()


@dataclass(frozen=True)
class Settings:
    app_name: str
    storage_path: Path
    storage_key: str = DEFAULT_STORAGE_KEY
    auth_key: str = DEFAULT_AUTH_KEY
    admin_email: str = DEFAULT_ADMIN_EMAIL
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    public_origin: str = "http://localhost:5173"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and the project .env)."""

        app_name = os.getenv("APP_NAME", DEFAULT_APP_NAME)
        storage_path = Path(
            os.getenv("ACADEMY_STORAGE_FILE", str(_default_data_dir(app_name) / "local_storage.json"))
        ).expanduser()

        return cls(
            app_name=app_name,
            storage_path=storage_path,
            storage_key=os.getenv("ACADEMY_STORAGE_KEY", DEFAULT_STORAGE_KEY),
            auth_key=os.getenv("ACADEMY_AUTH_KEY", DEFAULT_AUTH_KEY),
            admin_email=os.getenv("ACADEMY_ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL),
            admin_password=os.getenv("ACADEMY_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
            public_origin=os.getenv("ACADEMY_PUBLIC_ORIGIN", "http://localhost:5173"),
            log_level=os.getenv("ACADEMY_LOG_LEVEL", "INFO").upper(),
        )

    def __str__(self) -> str:
        return (
            f"Settings(app_name={self.app_name}, "
            f"storage_path={self.storage_path}, "
            f"storage_key={self.storage_key}, "
            f"auth_key={self.auth_key}, "
            f"public_origin={self.public_origin}, "
            f"log_level={self.log_level})"
        )


settings = Settings.from_env()


def refresh_settings() -> Settings:
    """Rebuild the module-level settings object from the current environment."""

    global settings  # noqa: PLW0603 - module-level singleton

    settings = Settings.from_env()
    return settings
