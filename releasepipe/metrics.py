"""Best-effort usage reporting.

Events are only sent when metrics are enabled and RELEASEPIPE_METRICS_URL
points at a collector. Reporting never interrupts a release.
"""

import json
import logging
import os
import urllib.error
import urllib.request
import uuid
from typing import Any

from releasepipe import __version__

logger = logging.getLogger(__name__)

METRICS_URL_ENV = "RELEASEPIPE_METRICS_URL"
METRICS_TIMEOUT = 3  # seconds


class Metrics:
    def __init__(self, is_enabled: bool = True, url: str | None = None) -> None:
        self.url = url if url is not None else os.environ.get(METRICS_URL_ENV)
        self.is_enabled = is_enabled and bool(self.url)
        self.client_id = str(uuid.uuid4())

    def _send(self, payload: dict[str, Any]) -> None:
        if not self.is_enabled or not self.url:
            return
        body = json.dumps(
            {"client_id": self.client_id, "version": __version__, **payload}, default=str
        ).encode("utf-8")
        req = urllib.request.Request(
            self.url,
            data=body,
            headers={"Content-Type": "application/json", "User-Agent": "releasepipe"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=METRICS_TIMEOUT):
                pass
        except (urllib.error.URLError, OSError, ValueError) as e:
            logger.debug("Metrics not sent: %s", e)

    def track_event(self, action: str, payload: dict[str, Any] | None = None) -> None:
        self._send({"type": "event", "action": action, "payload": payload or {}})

    def track_exception(self, err: BaseException) -> None:
        self._send({"type": "exception", "error": type(err).__name__, "message": str(err)})
