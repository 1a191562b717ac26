import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

# LogRecord attributes that are not user-supplied `extra=` fields
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    Notes
    -----
    - Keys passed through `extra=` are copied into the payload, so
      `log.debug("Cache hit", extra={"key": k})` yields `{"msg": "Cache hit", "key": k, ...}`.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k, v in vars(record).items():
            if k not in _RESERVED and not k.startswith("_"):
                payload[k] = v
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    """Attach a JSON stream handler to the package logger once.

    Parameters
    ----------
    level : Optional[Union[int, str]]
        Logging level; defaults to `settings.log_level`.
    """

    if level is None:
        from .settings import get_settings

        level = get_settings().log_level
    root = logging.getLogger("peer_cache")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)
    if any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
