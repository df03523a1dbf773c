"""Online/offline signal consulted before every orchestrated call."""

from __future__ import annotations

import logging
import os
import socket
import time
from typing import Callable
from urllib.parse import urlparse

from matchoracle.ai.gemini_client import GEMINI_BASE_URL

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 2.0
DEFAULT_PROBE_TTL_SECONDS = 30.0


def _offline_forced() -> bool:
    return (os.getenv("MATCHORACLE_OFFLINE") or "").strip().lower() in {"1", "true", "yes"}


class ConnectivityProbe:
    """TCP connect to the model host, memoized for ``ttl_seconds``."""

    def __init__(
        self,
        host: str | None = None,
        port: int = 443,
        *,
        timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        ttl_seconds: float = DEFAULT_PROBE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        force_offline: bool | None = None,
    ) -> None:
        self._host = host or urlparse(GEMINI_BASE_URL).hostname or "generativelanguage.googleapis.com"
        self._port = port
        self._timeout = timeout
        self._ttl = ttl_seconds
        self._clock = clock
        self._force_offline = _offline_forced() if force_offline is None else force_offline
        self._last_checked: float | None = None
        self._last_result = True

    def __call__(self) -> bool:
        if self._force_offline:
            return False
        now = self._clock()
        if self._last_checked is not None and now - self._last_checked < self._ttl:
            return self._last_result

        online = True
        try:
            with socket.create_connection((self._host, self._port), timeout=self._timeout):
                pass
        except OSError as exc:
            online = False
            logger.warning("Connectivity probe to %s:%s failed: %s", self._host, self._port, exc)

        if online != self._last_result:
            logger.info("Connectivity changed: online=%s", online)
        self._last_checked = now
        self._last_result = online
        return online
