from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from cryptography.fernet import Fernet, InvalidToken

from matchoracle.models import AppSettings

logger = logging.getLogger(__name__)
_FERNET: Fernet | None = None

DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass(frozen=True)
class SettingsSnapshot:
    id: int
    gemini_api_key_enc: str | None
    gemini_model: str
    search_grounding_enabled: bool
    fixtures_ttl_seconds: int
    odds_ttl_seconds: int
    comparison_ttl_seconds: int
    analysis_ttl_seconds: int
    odds_poll_seconds: int


def _default_settings() -> AppSettings:
    return AppSettings(
        id=1,
        gemini_api_key_enc=None,
        gemini_model=DEFAULT_MODEL,
        search_grounding_enabled=True,
        fixtures_ttl_seconds=30 * 60,
        odds_ttl_seconds=90,
        comparison_ttl_seconds=24 * 60 * 60,
        analysis_ttl_seconds=10 * 60,
        odds_poll_seconds=90,
        updated_at_utc=datetime.now(timezone.utc),
    )


def default_snapshot() -> SettingsSnapshot:
    """Snapshot of the built-in defaults, for callers without a database."""
    return snapshot_settings(_default_settings())


def get_or_create_settings(db) -> AppSettings:
    settings = db.query(AppSettings).filter(AppSettings.id == 1).one_or_none()
    if settings:
        return settings
    settings = _default_settings()
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def snapshot_settings(settings: AppSettings) -> SettingsSnapshot:
    return SettingsSnapshot(
        id=settings.id,
        gemini_api_key_enc=settings.gemini_api_key_enc,
        gemini_model=settings.gemini_model,
        search_grounding_enabled=settings.search_grounding_enabled,
        fixtures_ttl_seconds=settings.fixtures_ttl_seconds,
        odds_ttl_seconds=settings.odds_ttl_seconds,
        comparison_ttl_seconds=settings.comparison_ttl_seconds,
        analysis_ttl_seconds=settings.analysis_ttl_seconds,
        odds_poll_seconds=settings.odds_poll_seconds,
    )


def get_fernet() -> Fernet:
    global _FERNET
    if _FERNET is not None:
        return _FERNET
    secret = (os.getenv("APP_SECRET_KEY") or "").strip()
    if not secret:
        secret = Fernet.generate_key().decode("utf-8")
        logger.warning(
            "APP_SECRET_KEY missing. Generated a temporary key: %s. "
            "Set APP_SECRET_KEY to this value to persist decryption.",
            secret,
        )
    _FERNET = Fernet(secret.encode("utf-8"))
    return _FERNET


def encrypt_api_key(api_key: str | None) -> str | None:
    if not api_key:
        return None
    fernet = get_fernet()
    return fernet.encrypt(api_key.encode("utf-8")).decode("utf-8")


def decrypt_api_key(encrypted: str | None) -> str | None:
    if not encrypted:
        return None
    fernet = get_fernet()
    try:
        return fernet.decrypt(encrypted.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        logger.error("Failed to decrypt Gemini API key. Check APP_SECRET_KEY.")
        return None


def resolve_api_key(settings: SettingsSnapshot) -> str | None:
    """Stored key first, then the GEMINI_API_KEY / API_KEY environment variables."""
    api_key = decrypt_api_key(settings.gemini_api_key_enc)
    if api_key:
        return api_key
    for name in ("GEMINI_API_KEY", "API_KEY"):
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None
