from .habit import Habit, HabitLog, Interval
from .focus import FocusSession, FocusStatus
from .intent import Intent, IntentStatus
from .journal import JournalEntry, Mood
from .period import Period, period_for

__all__ = [
    "Habit",
    "HabitLog",
    "Interval",
    "FocusSession",
    "FocusStatus",
    "Intent",
    "IntentStatus",
    "JournalEntry",
    "Mood",
    "Period",
    "period_for",
]
