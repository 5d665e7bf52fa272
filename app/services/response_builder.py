"""Build reply messages from timer results.

Only data is produced here; rendering for Slack lives in
app.utils.slack_format.
"""
from datetime import datetime
from typing import Optional

from app.models.command import START_PROJECT_ACTION, STOP_TIMER_ACTION, SummaryPeriod
from app.models.message import (
    ActionsBlock,
    Button,
    DividerBlock,
    HeaderBlock,
    Message,
    SectionBlock,
)
from app.models.project import Project
from app.models.time_entry import RunningEntry, TimeEntry, TimeSummary
from app.utils.formatting import format_duration, round_minutes
from app.utils.periods import utcnow

PERIOD_LABELS = {
    SummaryPeriod.TODAY: "today",
    SummaryPeriod.WEEK: "this week",
    SummaryPeriod.MONTH: "this month",
}


def stop_button() -> Button:
    return Button(text="Stop", action_id=STOP_TIMER_ACTION, value="stop", style="danger")


def start_project_button(project: Project) -> Button:
    return Button(text=project.name, action_id=START_PROJECT_ACTION, value=project.id)


def _ticket_label(entry: RunningEntry) -> Optional[str]:
    if entry.ticket_number is None:
        return None
    if entry.ticket_title:
        return f"#{entry.ticket_number} - {entry.ticket_title}"
    return f"#{entry.ticket_number}"


def timer_started(entry: RunningEntry) -> Message:
    """Confirmation for a started timer, with a stop button."""
    text = f":white_check_mark: Timer started for *{entry.project_name}*"
    if entry.ticket_number is not None:
        text += f" (ticket #{entry.ticket_number})"
    return Message.from_blocks([
        SectionBlock(text=text + "."),
        ActionsBlock(elements=[stop_button()]),
    ])


def timer_stopped(entry: TimeEntry, project_name: Optional[str]) -> Message:
    """Confirmation for a stopped timer with the tracked duration."""
    duration = format_duration(entry.duration_minutes or 0)
    name = project_name or "Unknown project"
    return Message.from_blocks([
        SectionBlock(text=f":stop_button: Timer stopped for *{name}* ({duration})."),
    ])


def already_running(running: Optional[RunningEntry]) -> Message:
    """A timer is already running; name it and point to `stop`."""
    if running is not None:
        text = f"A timer is already running for *{running.project_name}*."
    else:
        text = "A timer is already running."
    return Message.from_blocks([
        SectionBlock(text=f"{text} Stop it first with `stop`."),
        ActionsBlock(elements=[stop_button()]),
    ])


def nothing_running() -> Message:
    return Message.from_blocks([SectionBlock(text="No timer is running right now.")])


def timer_status(entry: RunningEntry, now: Optional[datetime] = None) -> Message:
    """Details of the running timer, with a stop button."""
    if now is None:
        now = utcnow()
    elapsed = format_duration(round_minutes(entry.start_time, now))

    lines = [
        f":stopwatch: Running for {elapsed}",
        f":open_file_folder: Project: *{entry.project_name}*",
    ]
    ticket = _ticket_label(entry)
    if ticket:
        lines.append(f":ticket: Ticket: {ticket}")

    return Message.from_blocks([
        HeaderBlock(text="Timer running"),
        SectionBlock(text="\n".join(lines)),
        DividerBlock(),
        ActionsBlock(elements=[stop_button()]),
    ])


def time_summary(summary: TimeSummary) -> Message:
    label = PERIOD_LABELS[summary.period]
    return Message.from_blocks([
        HeaderBlock(text=f"Summary for {label}"),
        SectionBlock(text=f"Total time: *{format_duration(summary.total_minutes)}*"),
    ])


def project_picker(projects: list[Project]) -> Message:
    """Ask which project to start, offering one button per project."""
    if not projects:
        return Message.from_blocks([
            SectionBlock(text="There are no projects yet. Create one first."),
        ])

    return Message.from_blocks([
        SectionBlock(text="Which project do you want to track time for?"),
        ActionsBlock(elements=[start_project_button(project) for project in projects]),
    ])


def not_found(message: str) -> Message:
    """Unknown project or ticket."""
    return Message.from_blocks([SectionBlock(text=f":warning: {message}.")])


def identity_not_linked() -> Message:
    return Message.from_blocks([
        SectionBlock(
            text=(
                "Could not find a linked account. Sign in once with Slack or "
                "make sure your Slack email matches your account email."
            )
        ),
    ])


def unknown_command(command: str) -> Message:
    return Message.from_blocks([
        SectionBlock(
            text=f"Unknown command `{command}`. Use start, stop, status or summary."
        ),
    ])


def generic_error() -> Message:
    return Message.from_blocks([
        SectionBlock(text="Something went wrong. Please try again later."),
    ])
