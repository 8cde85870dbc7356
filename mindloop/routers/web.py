"""
Server-rendered web pages.

Every page is a plain HTML string; every form posts to an action that
redirects back (303) with a `?success=` or `?error=` flash message.
"""
from __future__ import annotations

import html
from datetime import timedelta
from typing import Callable, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from mindloop.core.errors import MindloopException, ValidationError
from mindloop.db.base import get_db
from mindloop.domain.focus import MAX_RATING, MIN_RATING, UNRATED
from mindloop.domain.habit import Interval
from mindloop.domain.journal import Mood
from mindloop.domain.period import utcnow
from mindloop.services import focus as focus_service
from mindloop.services import habits as habit_service
from mindloop.services import intents as intent_service
from mindloop.services import journal as journal_service
from mindloop.services import summary as summary_service

router = APIRouter(tags=["web"], include_in_schema=False)

STYLE = """
body { font-family: system-ui, sans-serif; margin: 0; background: #f6f6f4; color: #222; }
nav { background: #222; padding: 10px 20px; }
nav a { color: #eee; margin-right: 16px; text-decoration: none; }
main { max-width: 900px; margin: 20px auto; padding: 0 20px; }
.card { background: #fff; border-radius: 8px; padding: 14px 18px; margin-bottom: 14px; }
.muted { color: #777; }
.small { font-size: 13px; }
.flash { padding: 8px 12px; border-radius: 6px; margin-bottom: 14px; }
.flash.ok { background: #e3f5e1; }
.flash.err { background: #fbe3e3; }
.bar { background: #eee; border-radius: 4px; height: 8px; }
.bar > div { background: #4a8; border-radius: 4px; height: 8px; }
table { border-collapse: collapse; width: 100%; }
td, th { text-align: left; padding: 4px 8px; border-bottom: 1px solid #eee; }
form.inline { display: inline; }
"""

NAV = [
    ("/", "Home"),
    ("/habits", "Habits"),
    ("/focus", "Focus"),
    ("/intents", "Intents"),
    ("/journal", "Journal"),
    ("/summary", "Summary"),
]


# ── HTML helpers ──────────────────────────────────────────────

def _e(value) -> str:
    return html.escape(str(value))


def _page(title: str, body: str, success: Optional[str] = None, error: Optional[str] = None) -> HTMLResponse:
    links = "".join(f'<a href="{href}">{label}</a>' for href, label in NAV)
    flash = ""
    if success:
        flash += f'<div class="flash ok">{_e(success)}</div>'
    if error:
        flash += f'<div class="flash err">{_e(error)}</div>'
    return HTMLResponse(f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{_e(title)} · Mindloop</title>
  <style>{STYLE}</style>
</head>
<body>
  <nav>{links}</nav>
  <main>
    <h1>{_e(title)}</h1>
    {flash}
    {body}
  </main>
</body>
</html>""")


def _redirect(path: str, **flash: str) -> RedirectResponse:
    query = urlencode({k: v for k, v in flash.items() if v})
    return RedirectResponse(url=f"{path}?{query}" if query else path, status_code=303)


def _act(path: str, action: Callable[[], str]) -> RedirectResponse:
    """Run a form action and flash its message, or the domain error it raised."""
    try:
        message = action()
    except MindloopException as exc:
        return _redirect(path, error=exc.message)
    return _redirect(path, success=message)


def _button(action: str, label: str) -> str:
    return f'<form class="inline" method="post" action="{action}"><button type="submit">{_e(label)}</button></form>'


def _options(values, selected=None) -> str:
    return "".join(
        f'<option value="{_e(v)}"{" selected" if v == selected else ""}>{_e(v)}</option>'
        for v in values
    )


def _fmt_dt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _form_int(value: Optional[str], field: str) -> int:
    try:
        return int((value or "").strip())
    except ValueError:
        raise ValidationError(f"{field} must be a whole number", field=field) from None


# ── Home ──────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    db: Session = Depends(get_db),
    success: Optional[str] = None,
    error: Optional[str] = None,
):
    user_name = request.app.state.settings.USER_NAME
    habits = habit_service.list_habits(db)
    progress = habit_service.current_progress(db, habits)
    done = sum(1 for p in progress if p.is_completed)
    active_focus = focus_service.list_focus(db, "active")
    intents = intent_service.list_active_intents(db)
    report = summary_service.summary_for(db, "daily")

    greeting = f"<p>Welcome back, {_e(user_name)}.</p>" if user_name else ""
    body = greeting + f"""
    <section class="card">
      <h2>Today</h2>
      <div>Habits completed: <b>{done}/{len(progress)}</b></div>
      <div>Focus in the last 24 hours: <b>{_e(report.focus.total_duration)}</b>
        over {report.focus.total_sessions} session(s)</div>
      <div>Active focus sessions: <b>{len(active_focus)}</b></div>
      <div>Active intents: <b>{len(intents)}</b></div>
    </section>
    """
    return _page("Mindloop", body, success, error)


# ── Habits ────────────────────────────────────────────────────

@router.get("/habits", response_class=HTMLResponse)
def habits_page(db: Session = Depends(get_db), success: Optional[str] = None, error: Optional[str] = None):
    habits = habit_service.list_habits(db)
    rows = []
    for p in habit_service.current_progress(db, habits):
        h = p.habit
        rows.append(f"""
        <tr>
          <td><b>{_e(h.title)}</b><div class="muted small">{_e(h.description)}</div></td>
          <td>{_e(h.interval.value)}</td>
          <td>{p.actual_count}/{h.target_count}
            <div class="bar"><div style="width:{p.progress_pct}%"></div></div></td>
          <td>
            {_button(f"/habits/{h.id}/log", "Log")}
            {_button(f"/habits/{h.id}/unlog", "Undo")}
            {_button(f"/habits/{h.id}/delete", "Delete")}
          </td>
        </tr>""")

    body = f"""
    <section class="card">
      <h2>New habit</h2>
      <form method="post" action="/habits">
        <input name="title" placeholder="Title" required maxlength="100" />
        <input name="description" placeholder="Description" />
        <input name="target_count" type="number" min="1" value="1" />
        <select name="interval">{_options([i.value for i in Interval], Interval.daily.value)}</select>
        <button type="submit">Add</button>
      </form>
    </section>
    <section class="card">
      <table>
        <tr><th>Habit</th><th>Interval</th><th>This period</th><th></th></tr>
        {''.join(rows) if rows else '<tr><td colspan="4" class="muted">No habits yet.</td></tr>'}
      </table>
    </section>
    """
    return _page("Habits", body, success, error)


@router.post("/habits")
def habits_create(
    title: str = Form(...),
    description: str = Form(""),
    target_count: Optional[str] = Form(None),
    interval: str = Form(Interval.daily.value),
    db: Session = Depends(get_db),
):
    def action() -> str:
        habit = habit_service.create_habit(
            db,
            title,
            description=description or None,
            target_count=_form_int(target_count, "target_count"),
            interval=interval,
        )
        return f"Habit '{habit.title}' created."
    return _act("/habits", action)


@router.post("/habits/{habit_id}/log")
def habits_log(habit_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        habit, log = habit_service.log_habit(db, habit_id)
        if log.is_completed:
            return f"Habit '{habit.title}' completed for this period."
        return f"Habit '{habit.title}' logged ({log.actual_count}/{log.target_count})."
    return _act("/habits", action)


@router.post("/habits/{habit_id}/unlog")
def habits_unlog(habit_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        habit, _ = habit_service.unlog_habit(db, habit_id)
        return f"Habit '{habit.title}' marked as undone."
    return _act("/habits", action)


@router.post("/habits/{habit_id}/delete")
def habits_delete(habit_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        habit_service.delete_habit(db, habit_id)
        return "Habit deleted."
    return _act("/habits", action)


# ── Focus ─────────────────────────────────────────────────────

@router.get("/focus", response_class=HTMLResponse)
def focus_page(db: Session = Depends(get_db), success: Optional[str] = None, error: Optional[str] = None):
    now = utcnow()
    rows = []
    for s in focus_service.list_focus(db):
        if s.is_active():
            actions = _button(f"/focus/{s.id}/pause", "Pause") + _button(f"/focus/{s.id}/end", "End")
        elif s.is_paused():
            actions = _button(f"/focus/{s.id}/resume", "Resume")
        else:
            actions = f"""
            <form class="inline" method="post" action="/focus/{s.id}/rate">
              <input name="rating" type="number" min="{MIN_RATING}" max="{MAX_RATING}" required style="width:4em" />
              <button type="submit">Rate</button>
            </form>"""
        rating = "-" if s.rating == UNRATED else f"{s.rating}/10"
        rows.append(f"""
        <tr>
          <td>{_e(s.title)}</td>
          <td>{_e(s.status.value)}</td>
          <td>{_e(summary_service.format_minutes(s.current_duration(now)))}</td>
          <td>{rating}</td>
          <td>{actions}</td>
        </tr>""")

    body = f"""
    <section class="card">
      <form method="post" action="/focus">
        <input name="title" placeholder="What are you focusing on?" required />
        <button type="submit">Start</button>
      </form>
    </section>
    <section class="card">
      <table>
        <tr><th>Session</th><th>Status</th><th>Duration</th><th>Rating</th><th></th></tr>
        {''.join(rows) if rows else '<tr><td colspan="5" class="muted">No focus sessions yet.</td></tr>'}
      </table>
    </section>
    """
    return _page("Focus", body, success, error)


@router.post("/focus")
def focus_start(title: str = Form(...), db: Session = Depends(get_db)):
    def action() -> str:
        session = focus_service.start_focus(db, title)
        return f"Focus session '{session.title}' started."
    return _act("/focus", action)


@router.post("/focus/{session_id}/end")
def focus_end(session_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        session = focus_service.end_focus(db, session_id)
        return f"Focus session ended after {summary_service.format_minutes(session.duration_minutes)}."
    return _act("/focus", action)


@router.post("/focus/{session_id}/pause")
def focus_pause(session_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        return f"Focus session {focus_service.pause_focus(db, session_id).status.value}."
    return _act("/focus", action)


@router.post("/focus/{session_id}/resume")
def focus_resume(session_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        return f"Focus session {focus_service.resume_focus(db, session_id).status.value}."
    return _act("/focus", action)


@router.post("/focus/{session_id}/rate")
def focus_rate(session_id: int, rating: Optional[str] = Form(None), db: Session = Depends(get_db)):
    def action() -> str:
        session = focus_service.rate_focus(db, session_id, _form_int(rating, "rating"))
        return f"Rated {session.rating}/10."
    return _act("/focus", action)


# ── Intents ───────────────────────────────────────────────────

@router.get("/intents", response_class=HTMLResponse)
def intents_page(db: Session = Depends(get_db), success: Optional[str] = None, error: Optional[str] = None):
    rows = []
    for i in intent_service.list_intents(db):
        end = _button(f"/intents/{i.id}/end", "Done") if i.is_active() else _fmt_dt(i.ended_at)
        rows.append(
            f"<tr><td>{_e(i.name)}</td><td>{_e(i.status.value)}</td>"
            f"<td>{_fmt_dt(i.created_at)}</td><td>{end}</td></tr>"
        )

    body = f"""
    <section class="card">
      <form method="post" action="/intents">
        <input name="name" placeholder="What do you intend to do?" required />
        <button type="submit">Start</button>
      </form>
    </section>
    <section class="card">
      <table>
        <tr><th>Intent</th><th>Status</th><th>Started</th><th>Ended</th></tr>
        {''.join(rows) if rows else '<tr><td colspan="4" class="muted">No intents yet.</td></tr>'}
      </table>
    </section>
    """
    return _page("Intents", body, success, error)


@router.post("/intents")
def intents_start(name: str = Form(...), db: Session = Depends(get_db)):
    def action() -> str:
        intent = intent_service.start_intent(db, name)
        return f"Intent '{intent.name}' started."
    return _act("/intents", action)


@router.post("/intents/{intent_id}/end")
def intents_end(intent_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        intent = intent_service.end_intent(db, intent_id)
        return f"Intent '{intent.name}' done."
    return _act("/intents", action)


# ── Journal ───────────────────────────────────────────────────

@router.get("/journal", response_class=HTMLResponse)
def journal_page(db: Session = Depends(get_db), success: Optional[str] = None, error: Optional[str] = None):
    cards = []
    for entry in journal_service.list_entries(db):
        cards.append(f"""
        <section class="card">
          <h3>{_e(entry.title)} <span class="muted small">{_e(entry.mood.value)} · {_fmt_dt(entry.created_at)}</span></h3>
          <div style="white-space:pre-wrap">{_e(entry.content)}</div>
          {_button(f"/journal/{entry.id}/delete", "Delete")}
        </section>""")

    body = f"""
    <section class="card">
      <form method="post" action="/journal">
        <div><input name="title" placeholder="Title" required maxlength="100" />
          <select name="mood">{_options([m.value for m in Mood], Mood.neutral.value)}</select></div>
        <div><textarea name="content" rows="5" cols="70" required></textarea></div>
        <button type="submit">Save</button>
      </form>
    </section>
    {''.join(cards) if cards else '<div class="muted">No entries yet.</div>'}
    """
    return _page("Journal", body, success, error)


@router.post("/journal")
def journal_create(
    title: str = Form(...),
    content: str = Form(...),
    mood: str = Form(Mood.neutral.value),
    db: Session = Depends(get_db),
):
    def action() -> str:
        journal_service.create_entry(db, title, content, mood)
        return "Journal entry saved."
    return _act("/journal", action)


@router.post("/journal/{entry_id}/delete")
def journal_delete(entry_id: int, db: Session = Depends(get_db)):
    def action() -> str:
        journal_service.delete_entry(db, entry_id)
        return "Journal entry deleted."
    return _act("/journal", action)


# ── Summary ───────────────────────────────────────────────────

@router.get("/summary", response_class=HTMLResponse)
def summary_page(
    start: Optional[str] = None,
    end: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Custom range summary; defaults to the last seven days."""
    today = utcnow().date()
    start = start or (today - timedelta(days=7)).isoformat()
    end = end or today.isoformat()

    form = f"""
    <section class="card">
      <form method="get" action="/summary">
        <input type="date" name="start" value="{_e(start)}" />
        <input type="date" name="end" value="{_e(end)}" />
        <button type="submit">Show</button>
      </form>
    </section>"""

    try:
        report = summary_service.custom_summary(db, start, end)
    except MindloopException as exc:
        return _page("Summary", form, error=exc.message)

    habit_rows = "".join(
        f"<tr><td>{_e(h.habit_name)}</td><td>{h.logs_completed}/{h.logs_tracked}</td>"
        f"<td>{h.completion_rate:.0f}%</td></tr>"
        for h in report.habits
    )
    intent_rows = "".join(
        f"<tr><td>{_e(i.intent_name)}</td><td>{_e(i.status)}</td></tr>" for i in report.intents
    )
    body = form + f"""
    <section class="card">
      <h2>{_e(report.date_range)}</h2>
      <h3>Focus</h3>
      <div>Sessions: <b>{report.focus.total_sessions}</b></div>
      <div>Total: <b>{_e(report.focus.total_duration)}</b></div>
      <div>Longest: <b>{_e(report.focus.longest_session)}</b></div>
      <h3>Habits</h3>
      <table><tr><th>Habit</th><th>Completed</th><th>Rate</th></tr>
        {habit_rows or '<tr><td colspan="3" class="muted">No habit logs in this range.</td></tr>'}</table>
      <h3>Intents</h3>
      <table><tr><th>Intent</th><th>Status</th></tr>
        {intent_rows or '<tr><td colspan="2" class="muted">No intents in this range.</td></tr>'}</table>
    </section>"""
    return _page("Summary", body)
