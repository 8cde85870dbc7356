"""
mindloop command line.

    mindloop habit add "Exercise" "Stay fit" 1 --daily
    mindloop habit log 1
    mindloop focus start "Write the report"
    mindloop summary --weekly
    mindloop configure

Every command opens one database session from Settings (DATABASE_URL,
.env) and prints aligned plain-text tables. Domain errors are printed to
stderr and turn into exit code 1.
"""
from __future__ import annotations

import argparse
import sys
from datetime import datetime
from getpass import getpass
from typing import Any, Callable, Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from mindloop.core.config import (
    LOCAL_DATABASE_URL,
    PROFILE_MODES,
    Settings,
    postgres_url,
    write_env_file,
)
from mindloop.core.errors import HabitAlreadyCompletedError, MindloopException
from mindloop.core.log import configure_logging, get_logger
from mindloop.db.base import build_engine, init_db, make_session_factory
from mindloop.domain.focus import UNRATED, FocusSession, FocusStatus
from mindloop.domain.habit import Habit, HabitLog, Interval
from mindloop.domain.intent import Intent, IntentStatus
from mindloop.domain.journal import JournalEntry, Mood
from mindloop.services import focus as focus_service
from mindloop.services import habits as habit_service
from mindloop.services import intents as intent_service
from mindloop.services import journal as journal_service
from mindloop.services import maintenance
from mindloop.services import summary as summary_service

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def _fmt_dt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _truncate(text: str, width: int = 40) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def _print_table(headers: Sequence[str], rows: Iterable[Sequence[Any]], out=None) -> None:
    out = out or sys.stdout
    rows = [[str(c) for c in row] for row in rows]
    if not rows:
        print("(nothing to show)", file=out)
        return
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]
    line = "  ".join("{:<%d}" % w for w in widths)
    print(line.format(*headers).rstrip(), file=out)
    print("  ".join("-" * w for w in widths), file=out)
    for row in rows:
        print(line.format(*row).rstrip(), file=out)


HABIT_HEADERS = ("ID", "Title", "Description", "Interval", "Target", "Created")
LOG_HEADERS = ("ID", "Habit", "Title", "Period", "Progress", "Done", "Period end")
FOCUS_HEADERS = ("ID", "Title", "Status", "Duration", "Rating", "Started")
INTENT_HEADERS = ("ID", "Name", "Status", "Started", "Ended")
JOURNAL_HEADERS = ("ID", "Title", "Mood", "Content", "Created")


def _habit_row(h: Habit) -> list:
    return [h.id, h.title, _truncate(h.description), h.interval.value, h.target_count, _fmt_dt(h.created_at)]


def _log_row(log: HabitLog) -> list:
    return [
        log.id,
        log.habit_id,
        log.title,
        log.period_key,
        f"{log.actual_count}/{log.target_count}",
        "yes" if log.is_completed else "no",
        _fmt_dt(log.ended_at),
    ]


def _focus_row(s: FocusSession) -> list:
    rating = "-" if s.rating == UNRATED else f"{s.rating}/10"
    return [
        s.id,
        s.title,
        s.status.value,
        summary_service.format_minutes(s.current_duration()),
        rating,
        _fmt_dt(s.created_at),
    ]


def _intent_row(i: Intent) -> list:
    return [i.id, i.name, i.status.value, _fmt_dt(i.created_at), _fmt_dt(i.ended_at)]


def _journal_row(e: JournalEntry) -> list:
    return [e.id, e.title, e.mood.value, _truncate(e.content.replace("\n", " ")), _fmt_dt(e.created_at)]


def _print_summary(report: summary_service.SummaryReport) -> None:
    print(f"Summary for {report.date_range}")
    print()
    print("Focus")
    _print_table(
        ("Sessions", "Total", "Longest"),
        [(report.focus.total_sessions, report.focus.total_duration, report.focus.longest_session)],
    )
    print()
    print("Habits")
    _print_table(
        ("Habit", "Completed", "Rate"),
        [(h.habit_name, f"{h.logs_completed}/{h.logs_tracked}", f"{h.completion_rate:.0f}%") for h in report.habits],
    )
    print()
    print("Intents")
    _print_table(("Intent", "Status"), [(i.intent_name, i.status) for i in report.intents])


# ---------------------------------------------------------------------------
# Habit commands
# ---------------------------------------------------------------------------

def _interval_from_args(args: argparse.Namespace) -> Optional[str]:
    if getattr(args, "weekly", False):
        return Interval.weekly.value
    if getattr(args, "daily", False):
        return Interval.daily.value
    return None


def _cmd_habit_add(db: Session, args: argparse.Namespace) -> None:
    habit = habit_service.create_habit(
        db,
        args.title,
        description=args.description,
        target_count=args.target_count,
        interval=_interval_from_args(args),
    )
    print(f"Habit '{habit.title}' added with ID {habit.id}.")


def _cmd_habit_list(db: Session, args: argparse.Namespace) -> None:
    _print_table(HABIT_HEADERS, map(_habit_row, habit_service.list_habits(db, _interval_from_args(args))))


def _cmd_habit_update(db: Session, args: argparse.Namespace) -> None:
    habit = habit_service.update_habit(
        db,
        args.id,
        title=args.title,
        description=args.description,
        target_count=args.target_count,
        interval=_interval_from_args(args),
    )
    print(f"Habit '{habit.title}' updated.")


def _cmd_habit_delete(db: Session, args: argparse.Namespace) -> None:
    habit = habit_service.get_habit(db, args.id)
    habit_service.delete_habit(db, args.id)
    print(f"Habit '{habit.title}' deleted.")


def _cmd_habit_log(db: Session, args: argparse.Namespace) -> None:
    try:
        habit, log = habit_service.log_habit(db, args.id, count=args.count)
    except HabitAlreadyCompletedError as exc:
        # reported, not failed
        print(exc.message)
        return
    if log.is_completed:
        print(f"Habit '{habit.title}' completed for {log.period_key}. Well done!")
    else:
        print(f"Habit '{habit.title}' logged for {log.period_key} ({log.actual_count}/{log.target_count}).")


def _cmd_habit_unlog(db: Session, args: argparse.Namespace) -> None:
    habit, log = habit_service.unlog_habit(db, args.id)
    print(f"Habit '{habit.title}' marked as undone for {log.period_key}.")


def _cmd_habit_show(db: Session, args: argparse.Namespace) -> None:
    habit = habit_service.get_habit(db, args.id)
    _print_table(HABIT_HEADERS, [_habit_row(habit)])
    print()
    _print_table(LOG_HEADERS, map(_log_row, habit_service.list_habit_logs(db, habit_id=habit.id)))


# ---------------------------------------------------------------------------
# Focus commands
# ---------------------------------------------------------------------------

def _cmd_focus_start(db: Session, args: argparse.Namespace) -> None:
    session = focus_service.start_focus(db, args.title)
    print(f"Focus session '{session.title}' started with ID {session.id}.")


def _cmd_focus_list(db: Session, args: argparse.Namespace) -> None:
    _print_table(FOCUS_HEADERS, map(_focus_row, focus_service.list_focus(db, args.status)))


def _cmd_focus_end(db: Session, args: argparse.Namespace) -> None:
    session = focus_service.end_focus(db, args.id)
    print(
        f"Focus session '{session.title}' ended after "
        f"{summary_service.format_minutes(session.duration_minutes)}. "
        f"Rate it with: mindloop focus rate {session.id} <0-10>"
    )


def _cmd_focus_pause(db: Session, args: argparse.Namespace) -> None:
    session = focus_service.pause_focus(db, args.id)
    print(f"Focus session '{session.title}' is {session.status.value}.")


def _cmd_focus_resume(db: Session, args: argparse.Namespace) -> None:
    session = focus_service.resume_focus(db, args.id)
    print(f"Focus session '{session.title}' is {session.status.value}.")


def _cmd_focus_rate(db: Session, args: argparse.Namespace) -> None:
    session = focus_service.rate_focus(db, args.id, args.rating)
    print(f"Focus session '{session.title}' rated {session.rating}/10.")


# ---------------------------------------------------------------------------
# Intent commands
# ---------------------------------------------------------------------------

def _cmd_intent_start(db: Session, args: argparse.Namespace) -> None:
    intent = intent_service.start_intent(db, args.name)
    print(f"Intent '{intent.name}' started with ID {intent.id}.")


def _cmd_intent_list(db: Session, args: argparse.Namespace) -> None:
    _print_table(INTENT_HEADERS, map(_intent_row, intent_service.list_intents(db, args.status)))


def _cmd_intent_end(db: Session, args: argparse.Namespace) -> None:
    intent = intent_service.end_intent(db, args.id)
    print(f"Intent '{intent.name}' done.")


# ---------------------------------------------------------------------------
# Journal commands
# ---------------------------------------------------------------------------

def _cmd_journal_new(db: Session, args: argparse.Namespace) -> None:
    content = args.content if args.content is not None else sys.stdin.read()
    entry = journal_service.create_entry(db, args.title, content, args.mood)
    print(f"Journal entry '{entry.title}' saved with ID {entry.id}.")


def _cmd_journal_list(db: Session, args: argparse.Namespace) -> None:
    _print_table(JOURNAL_HEADERS, map(_journal_row, journal_service.list_entries(db)))


def _cmd_journal_view(db: Session, args: argparse.Namespace) -> None:
    entry = journal_service.get_entry(db, args.id)
    print(f"{entry.title}  [{entry.mood.value}]  {_fmt_dt(entry.created_at)}")
    print()
    print(entry.content)


def _cmd_journal_update(db: Session, args: argparse.Namespace) -> None:
    entry = journal_service.update_entry(db, args.id, content=args.content, mood=args.mood)
    print(f"Journal entry '{entry.title}' updated.")


def _cmd_journal_delete(db: Session, args: argparse.Namespace) -> None:
    journal_service.delete_entry(db, args.id)
    print(f"Journal entry {args.id} deleted.")


# ---------------------------------------------------------------------------
# Summary / maintenance
# ---------------------------------------------------------------------------

def _cmd_summary(db: Session, args: argparse.Namespace) -> None:
    if args.date_from or args.date_to:
        if not (args.date_from and args.date_to):
            raise SystemExit("summary: --from and --to must be given together")
        report = summary_service.custom_summary(db, args.date_from, args.date_to)
    else:
        report = summary_service.summary_for(db, args.period or "daily")
    _print_summary(report)


def _cmd_clean_slate(db: Session, args: argparse.Namespace) -> None:
    if not args.yes:
        answer = input(f"Delete all {args.target} data? This cannot be undone. [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return
    deleted = maintenance.clean_slate(db, args.target)
    _print_table(("Kind", "Deleted"), sorted(deleted.items()))


# ---------------------------------------------------------------------------
# Commands that do not need a session
# ---------------------------------------------------------------------------

def _cmd_init_db(settings: Settings, args: argparse.Namespace) -> None:
    init_db(build_engine(settings.database_url))
    print("Database initialized.")


def _ask(prompt: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    return input(f"{prompt}{suffix}: ").strip() or default


def _cmd_configure(settings: Settings, args: argparse.Namespace) -> None:
    """Interactive profile setup; answers go into the dotenv file Settings reads."""
    print("Welcome to Mindloop configuration!")
    username = _ask("Please enter your preferred username")

    while True:
        mode = _ask(f"Please enter your preferred mode [{'/'.join(PROFILE_MODES)}]").lower()
        if mode in PROFILE_MODES:
            break
        print(f"Invalid mode. Please choose from: {', '.join(PROFILE_MODES)}.")

    if mode == "byodb":
        host = _ask("Please enter your database host name", "localhost")
        while True:
            port = _ask("Please enter your database port", "5432")
            if port.isdigit():
                break
            print("Port must be a number.")
        user = _ask("Please enter your database user name")
        password = getpass("Please enter your database password: ")
        name = _ask("Please enter your database name", "mindloop")
        database_url = postgres_url(host, int(port), user, password, name)
    else:
        database_url = LOCAL_DATABASE_URL

    path = write_env_file(args.env_file, {
        "USER_NAME": username,
        "MODE": mode,
        "DATABASE_URL": database_url,
    })
    print(f"Configuration complete! Your username is set to: {username}, using mode: {mode}")
    print(f"Settings written to {path}")


def _cmd_serve(settings: Settings, args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run(
        "mindloop.main:create_app",
        factory=True,
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _add_interval_flags(p: argparse.ArgumentParser) -> None:
    group = p.add_mutually_exclusive_group()
    group.add_argument("--daily", action="store_true", help="Daily interval")
    group.add_argument("--weekly", action="store_true", help="Weekly interval (ISO weeks)")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mindloop",
        description="Track habits, focus sessions, intents and a mood journal.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log at LOG_LEVEL instead of WARNING")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the database tables (idempotent)").set_defaults(
        raw=_cmd_init_db
    )

    conf = sub.add_parser("configure", help="Set up your profile and database interactively")
    conf.add_argument("--env-file", default=".env", help="dotenv file to update (default: .env)")
    conf.set_defaults(raw=_cmd_configure)

    srv = sub.add_parser("serve", help="Run the web UI and JSON API")
    srv.add_argument("--host")
    srv.add_argument("--port", type=int)
    srv.add_argument("--reload", action="store_true")
    srv.set_defaults(raw=_cmd_serve)

    # habit
    habit = sub.add_parser("habit", help="Manage habits").add_subparsers(dest="action", required=True)

    h_add = habit.add_parser("add", help="Add a habit")
    h_add.add_argument("title")
    h_add.add_argument("description", nargs="?")
    h_add.add_argument("target_count", nargs="?", type=int)
    _add_interval_flags(h_add)
    h_add.set_defaults(func=_cmd_habit_add)

    h_list = habit.add_parser("list", help="List habits")
    _add_interval_flags(h_list)
    h_list.set_defaults(func=_cmd_habit_list)

    h_up = habit.add_parser("update", help="Update a habit")
    h_up.add_argument("id", type=int)
    h_up.add_argument("--title")
    h_up.add_argument("--description")
    h_up.add_argument("--target-count", dest="target_count", type=int)
    _add_interval_flags(h_up)
    h_up.set_defaults(func=_cmd_habit_update)

    h_del = habit.add_parser("delete", aliases=["rm"], help="Delete a habit and its logs")
    h_del.add_argument("id", type=int)
    h_del.set_defaults(func=_cmd_habit_delete)

    h_log = habit.add_parser("log", help="Log a habit for the current period")
    h_log.add_argument("id", type=int)
    h_log.add_argument("--count", type=int, default=1, help="Completions to add (default: 1)")
    h_log.set_defaults(func=_cmd_habit_log)

    h_unlog = habit.add_parser("unlog", help="Reset the current period's progress")
    h_unlog.add_argument("id", type=int)
    h_unlog.set_defaults(func=_cmd_habit_unlog)

    h_show = habit.add_parser("show", help="Show a habit and its logs")
    h_show.add_argument("id", type=int)
    h_show.set_defaults(func=_cmd_habit_show)

    # focus
    focus = sub.add_parser("focus", help="Focus sessions").add_subparsers(dest="action", required=True)

    f_start = focus.add_parser("start", help="Start a focus session")
    f_start.add_argument("title")
    f_start.set_defaults(func=_cmd_focus_start)

    f_list = focus.add_parser("list", help="List focus sessions")
    f_list.add_argument("--status", choices=[s.value for s in FocusStatus])
    f_list.set_defaults(func=_cmd_focus_list)

    for name, func, helptext in (
        ("end", _cmd_focus_end, "End an active session"),
        ("pause", _cmd_focus_pause, "Pause an active session"),
        ("resume", _cmd_focus_resume, "Resume a paused session"),
    ):
        f = focus.add_parser(name, help=helptext)
        f.add_argument("id", type=int)
        f.set_defaults(func=func)

    f_rate = focus.add_parser("rate", help="Rate an ended session from 0 to 10")
    f_rate.add_argument("id", type=int)
    f_rate.add_argument("rating", type=int)
    f_rate.set_defaults(func=_cmd_focus_rate)

    # intent
    intent = sub.add_parser("intent", help="Intents").add_subparsers(dest="action", required=True)

    i_start = intent.add_parser("start", help="Start an intent")
    i_start.add_argument("name")
    i_start.set_defaults(func=_cmd_intent_start)

    i_list = intent.add_parser("list", help="List intents")
    i_list.add_argument("--status", choices=[s.value for s in IntentStatus])
    i_list.set_defaults(func=_cmd_intent_list)

    i_end = intent.add_parser("end", help="Mark an intent done")
    i_end.add_argument("id", type=int)
    i_end.set_defaults(func=_cmd_intent_end)

    # journal
    journal = sub.add_parser("journal", help="Mood journal").add_subparsers(dest="action", required=True)

    j_new = journal.add_parser("new", help="Write an entry")
    j_new.add_argument("title")
    j_new.add_argument("--content", help="Entry text; read from stdin when omitted")
    j_new.add_argument("--mood", choices=[m.value for m in Mood])
    j_new.set_defaults(func=_cmd_journal_new)

    journal.add_parser("list", help="List entries").set_defaults(func=_cmd_journal_list)

    j_view = journal.add_parser("view", help="Read an entry")
    j_view.add_argument("id", type=int)
    j_view.set_defaults(func=_cmd_journal_view)

    j_up = journal.add_parser("update", help="Change content and/or mood")
    j_up.add_argument("id", type=int)
    j_up.add_argument("--content")
    j_up.add_argument("--mood", choices=[m.value for m in Mood])
    j_up.set_defaults(func=_cmd_journal_update)

    j_del = journal.add_parser("delete", aliases=["rm"], help="Delete an entry")
    j_del.add_argument("id", type=int)
    j_del.set_defaults(func=_cmd_journal_delete)

    # summary
    s = sub.add_parser("summary", help="Productivity summary (default: last 24 hours)")
    window = s.add_mutually_exclusive_group()
    window.add_argument("-d", "--daily", dest="period", action="store_const", const="daily")
    window.add_argument("-w", "--weekly", dest="period", action="store_const", const="weekly")
    window.add_argument("-m", "--monthly", dest="period", action="store_const", const="monthly")
    window.add_argument("-y", "--yearly", dest="period", action="store_const", const="yearly")
    s.add_argument("--from", dest="date_from", help="YYYY-MM-DD, with --to")
    s.add_argument("--to", dest="date_to", help="YYYY-MM-DD, with --from")
    s.set_defaults(func=_cmd_summary)

    cs = sub.add_parser("clean-slate", help="Delete all data of one kind, or everything")
    cs.add_argument("target", choices=maintenance.CLEAN_SLATE_TARGETS)
    cs.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    cs.set_defaults(func=_cmd_clean_slate)

    return p


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL if args.verbose else "WARNING", json_logs=settings.LOG_JSON)

    raw: Optional[Callable] = getattr(args, "raw", None)
    if raw is not None:
        raw(settings, args)
        return 0

    engine = build_engine(settings.database_url)
    if settings.AUTO_CREATE_TABLES:
        init_db(engine)
    db = make_session_factory(engine)()
    try:
        args.func(db, args)
    except MindloopException as exc:
        logger.debug("command_failed", command=args.command, code=exc.code, details=exc.details)
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except BrokenPipeError:
        return 0
    finally:
        db.close()
        engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
