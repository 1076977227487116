from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header


def request_deadline(
    x_request_timeout_ms: Optional[int] = Header(default=None, ge=1),
) -> Optional[datetime]:
    """Absolute deadline from the optional ``X-Request-Timeout-Ms`` header."""
    if x_request_timeout_ms is None:
        return None
    return datetime.now(timezone.utc) + timedelta(milliseconds=x_request_timeout_ms)
