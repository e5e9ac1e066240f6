"""Structured timeline events recorded by poll cycles."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_cycle_event(
    stage: str,
    status: str,
    target_key: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured timeline event payload.

    Args:
        stage: Stage name (`cycle`, `snapshot`, `poll`, `schedule`).
        status: Stage status marker.
        target_key: Optional target the event refers to.
        details: Optional structured details object.

    Returns:
        dict[str, object]: JSON-compatible timeline event.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if target_key is not None:
        event_payload["target_key"] = target_key
    if details is not None:
        event_payload["details"] = details
    return event_payload
