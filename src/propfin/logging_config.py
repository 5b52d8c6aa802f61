"""Process-wide logging setup for the propfin CLI and scheduler."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

DEFAULT_LEVEL = "WARNING"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter.
    Includes level, message, logger, timestamp, exception and ledger ids when set.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for k in ("user_id", "account_id", "shop_id", "tenant_id"):
            if hasattr(record, k):
                payload[k] = getattr(record, k)

        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: Optional[str] = None, json_format: bool = False) -> None:
    level = (level or os.getenv("PROPFIN_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    json_format = json_format or os.getenv("PROPFIN_LOG_FORMAT", "").lower() == "json"

    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers so repeated CLI invocations don't duplicate output
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(
        (os.getenv("PROPFIN_SQL_LOG_LEVEL") or "WARNING").upper()
    )
