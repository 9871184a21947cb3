"""Redaction helpers for safe logging.

Guest names identify people and never reach a log line in clear text.
"""

import hashlib
from typing import Any

_REDACTED = "[REDACTED]"


def redact_guest_name(guest_name: str | None) -> str:
    """Return a stable, non-reversible tag for a guest name.

    The same name always maps to the same tag, so log lines for one guest
    can still be correlated.
    """
    if not guest_name:
        return _REDACTED
    digest = hashlib.sha256(guest_name.encode("utf-8")).hexdigest()
    return f"guest:{digest[:12]}"


def booking_log_context(
    *,
    guest_name: str | None = None,
    unit_id: str | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Build log context for a booking operation.

    guest_name is hashed; unit_id and the remaining fields (ids, dates,
    counts, reason codes) carry no personal data and are kept. Dates are
    rendered as ISO strings.
    """
    ctx: dict[str, Any] = {
        "guest": redact_guest_name(guest_name),
        "unit_id": unit_id,
    }
    for key, value in fields.items():
        ctx[key] = value.isoformat() if hasattr(value, "isoformat") else value
    return ctx
