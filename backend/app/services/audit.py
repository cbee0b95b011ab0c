from __future__ import annotations
from typing import Any, Dict, Optional
from app import get_db
from app.models.activity_log import ActivityLog
from app.models.service_task import StatusUpdate


def add_activity(task_id: Optional[str], action: str, description: str, performed_by_id: Optional[str],
                 meta: Optional[Dict[str, Any]] = None) -> ActivityLog:
    """Persist a free-text audit entry within the current DB session.

    Parameters:
      task_id: the task the event concerns (kept even after the task is deleted)
      action: one of ActivityLog.ALL_ACTIONS
      description: human readable summary shown in the activity feed
      performed_by_id: local user id of the caller
      meta: additional JSON-safe dictionary (shallow copied)
    """
    log = ActivityLog(
        task_id=task_id,
        action=action,
        description=description,
        performed_by_id=performed_by_id,
        meta=dict(meta or {}),
    )
    get_db().add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log


def add_status_update(task_id: str, from_status: str, to_status: str, updated_by_id: Optional[str],
                      notes: Optional[str] = None) -> StatusUpdate:
    """Persist the structured transition record; same transaction rules as add_activity."""
    su = StatusUpdate(
        task_id=task_id,
        from_status=from_status,
        to_status=to_status,
        notes=notes,
        updated_by_id=updated_by_id,
    )
    get_db().add(su)
    return su
