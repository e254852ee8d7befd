from __future__ import annotations

from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog


def log_activity(
    db: Session,
    *,
    actor_id: str | None,
    action: str,
    entity_id: str | None = None,
    entity_type: str = "schedule",
    details: dict | None = None,
) -> None:
    """Stage an audit row in the caller's transaction; it commits or rolls back with the write."""
    db.add(
        ActivityLog(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )
    )
