"""用药与预约提醒调度。"""
from home_organizer.reminders.models import (
    AppointmentReminder,
    DueEvent,
    DueKind,
    MedicationReminder,
    ReminderSnapshot,
    SchedulerOptions,
)
from home_organizer.reminders.scheduler import ReminderScheduler, compute_due_events
from home_organizer.reminders.store import ReminderStore
from home_organizer.reminders.ticker import AsyncioTicker, ManualTicker, TickHandle

__all__ = [
    "AppointmentReminder",
    "DueEvent",
    "DueKind",
    "MedicationReminder",
    "ReminderSnapshot",
    "SchedulerOptions",
    "ReminderScheduler",
    "compute_due_events",
    "ReminderStore",
    "AsyncioTicker",
    "ManualTicker",
    "TickHandle",
]
