"""Configuration helpers for Referral Flow."""
from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet
from dotenv import load_dotenv


DEFAULT_STORAGE_KEY = "referralflow-contacts"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(RuntimeError):
    """Raised when configuration is present but unusable."""


def _default_storage_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "contacts_store"


@dataclass(slots=True)
class Settings:
    """Runtime configuration for the tracker and CLI."""

    storage_dir: Path
    storage_key: str = DEFAULT_STORAGE_KEY
    encryption_key: Optional[str] = None
    persist_empty: bool = False
    force_memory: bool = False
    log_level: str = "WARNING"

    @property
    def encrypted(self) -> bool:
        return bool(self.encryption_key)


def load_settings(
    *,
    use_dotenv: bool = True,
    dotenv_path: Optional[str] = None,
) -> Settings:
    """Load settings from environment variables (and ``.env`` when present).

    Args:
        use_dotenv: Read a ``.env`` file into the environment first. Values
            already set in the environment win.
        dotenv_path: Explicit ``.env`` file; by default python-dotenv searches
            upwards from the package for one.

    Returns:
        Settings with defaults applied.

    Raises:
        ConfigError: if RF_ENCRYPTION_KEY is set but is not a valid Fernet key,
            RF_STORAGE_KEY is blank, or RF_LOG_LEVEL is not a level name.
    """
    if use_dotenv:
        load_dotenv(dotenv_path)

    storage_dir = os.getenv("RF_STORAGE_DIR", "").strip()
    storage_key = os.getenv("RF_STORAGE_KEY", DEFAULT_STORAGE_KEY).strip()
    if not storage_key:
        raise ConfigError("RF_STORAGE_KEY must not be blank.")

    encryption_key = os.getenv("RF_ENCRYPTION_KEY", "").strip() or None
    if encryption_key:
        try:
            Fernet(encryption_key.encode("ascii"))
        except (ValueError, UnicodeEncodeError) as exc:
            raise ConfigError(
                "RF_ENCRYPTION_KEY is not a valid Fernet key. "
                "Generate one with `referral-flow generate-key`."
            ) from exc

    log_level = os.getenv("RF_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"RF_LOG_LEVEL must be one of: {', '.join(LOG_LEVELS)}.")

    return Settings(
        storage_dir=Path(storage_dir) if storage_dir else _default_storage_dir(),
        storage_key=storage_key,
        encryption_key=encryption_key,
        persist_empty=os.getenv("RF_PERSIST_EMPTY", "0").strip() == "1",
        force_memory=os.getenv("RF_FORCE_MEMORY", "0").strip() == "1",
        log_level=log_level,
    )
