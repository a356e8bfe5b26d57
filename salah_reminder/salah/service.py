"""
Service layer: persist the scheduler's last fired event per location.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import select

from salah_reminder.core.db import session_scope
from salah_reminder.core.models import ReminderState
from .models import DAY_ORDER, EventKind, ScheduledEvent

_KINDS = (EventKind.ADHAAN, EventKind.IQAMAH)


class ReminderStateStore:
    """state_store for ReminderScheduler backed by the reminder_states table."""

    def save_last_fired(self, location_id: str, event: ScheduledEvent) -> None:
        with session_scope() as session:
            row = session.execute(
                select(ReminderState).where(ReminderState.location_id == location_id)
            ).scalars().first()
            now = datetime.now()
            if row is None:
                row = ReminderState(location_id=location_id)
                session.add(row)
            row.last_fired_at = event.firing_time
            row.last_fired_salah = event.salah_name
            row.last_fired_kind = event.kind
            row.updated_at = now

    def load_last_fired(self, location_id: str) -> Optional[ScheduledEvent]:
        """Return the last fired event for location_id, or None if nothing valid is stored."""
        row = get_reminder_state(location_id)
        if row is None or row.last_fired_at is None:
            return None
        if row.last_fired_salah not in DAY_ORDER or row.last_fired_kind not in _KINDS:
            return None
        return ScheduledEvent(row.last_fired_salah, row.last_fired_at, row.last_fired_kind)


def get_reminder_state(location_id: str) -> Optional[ReminderState]:
    """Return the ReminderState row for location_id (for API serialization)."""
    with session_scope() as session:
        return (
            session.execute(
                select(ReminderState).where(ReminderState.location_id == location_id)
            )
            .scalars().first()
        )
