from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Dict

logger = logging.getLogger(__name__)


class JsonlLogger:
    """Append-only JSONL request log with size-based rotation.

    Records describe the request outcome only. Callers must not pass image data or
    credentials.
    """

    def __init__(self, path: str, max_bytes: int = 25_000_000):
        self.path = path
        self.max_bytes = max_bytes
        log_dir = os.path.dirname(path)
        if log_dir:
            try:
                os.makedirs(log_dir, exist_ok=True)
            except OSError:
                logger.warning("[request-log] Cannot create directory %s", log_dir)

    def _rotate_if_needed(self):
        try:
            if (
                os.path.exists(self.path)
                and os.path.getsize(self.path) > self.max_bytes
            ):
                ts = time.strftime("%Y%m%d-%H%M%S")
                os.rename(self.path, f"{self.path}.{ts}")
        except OSError:
            logger.warning("[request-log] Rotation failed for %s", self.path)

    def log(self, record: Dict[str, Any]):
        self._rotate_if_needed()
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")
        except OSError:
            logger.warning("[request-log] Write failed for %s", self.path)
