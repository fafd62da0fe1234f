"""Session identifiers correlating a provenance log with its exports."""
from __future__ import annotations

import string
import time
import uuid

DEFAULT_PREFIX = "ledger"

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def check_session_id(session_id: str) -> str:
    """Return *session_id* if it is usable as a file name, else raise ValueError."""
    if not session_id or "/" in session_id or "\\" in session_id or session_id.startswith("."):
        raise ValueError(f"invalid session id: {session_id!r}")
    return session_id


def generate_session_id(prefix: str = DEFAULT_PREFIX) -> str:
    """Generate a session ID: ``{prefix}-{base36 epoch millis}-{8 hex}``.

    Raises ValueError if *prefix* would make the id unsafe as a file name.
    """
    millis = time.time_ns() // 1_000_000
    return check_session_id(f"{prefix}-{_to_base36(millis)}-{uuid.uuid4().hex[:8]}")


__all__ = ["DEFAULT_PREFIX", "check_session_id", "generate_session_id"]
