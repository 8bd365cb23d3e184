"""
Logging for the hiring intake. Call setup_logging() once at startup.

Pipeline log lines carry their result as `extra` fields (outcome, email,
document, duration_ms, remote_ip); both formatters surface them.
"""
import logging
import logging.handlers
import os
import json
from datetime import datetime, timezone

from src.core.paths import LOG_DIR

EXTRA_KEYS = ("outcome", "email", "document", "duration_ms", "remote_ip")

NOISY = ("urllib3", "werkzeug", "reportlab", "pypdf")


def _extras(record) -> dict:
    return {k: getattr(record, k) for k in EXTRA_KEYS if getattr(record, k, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""
    def format(self, record):
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """`12:00:01 [I] hiring.orchestrator: msg outcome=success duration_ms=40`"""
    def format(self, record):
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        line = f"{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}"
        pairs = " ".join(f"{k}={v}" for k, v in _extras(record).items())
        return f"{line} {pairs}" if pairs else line


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Args:
        level: LOG_LEVEL env, default INFO
        json_logs: LOG_JSON env, default off
        log_dir: rotating hiring.log goes here (HIRING_LOG_DIR env, default DATA_DIR/logs)
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.environ.get("LOG_JSON", "").lower() in ("1", "true", "yes")
    log_dir = log_dir or os.environ.get("HIRING_LOG_DIR", LOG_DIR)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    try:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "hiring.log"), maxBytes=5_000_000, backupCount=5)
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)
    except OSError:
        logging.getLogger("hiring").warning("File logging disabled: %s not writable", log_dir)

    for name in NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("hiring").info("Logging initialized (level=%s)", level)
