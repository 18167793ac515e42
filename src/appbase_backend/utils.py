import logging
import sys
from datetime import datetime, timezone
from typing import Optional

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def short_token(token: Optional[str]) -> str:
    """Truncated token for log lines."""
    if not token:
        return "<none>"
    return f"{token[:8]}..."

def configure_logging(level: str = "INFO"):

    root = logging.getLogger()

    if any(getattr(h, "_appbase", False) for h in root.handlers):
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    handler._appbase = True

    root.addHandler(handler)
    root.setLevel(level)
