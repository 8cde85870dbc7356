from .habit import HabitRow, HabitLogRow
from .focus_session import FocusSessionRow
from .intent import IntentRow
from .journal_entry import JournalEntryRow

__all__ = [
    "HabitRow",
    "HabitLogRow",
    "FocusSessionRow",
    "IntentRow",
    "JournalEntryRow",
]
