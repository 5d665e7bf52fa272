"""Parse slash commands and interactive payloads into typed intents."""
import json
import re
from typing import Any, Mapping

from app.errors import ValidationError
from app.models.command import (
    START_PROJECT_ACTION,
    STOP_TIMER_ACTION,
    Action,
    Intent,
    PromptProjectIntent,
    SlashCommand,
    StartIntent,
    StartProjectAction,
    StatusIntent,
    StopAction,
    StopIntent,
    SummaryIntent,
    SummaryPeriod,
    UnknownCommandIntent,
    UnsupportedAction,
)

TICKET_TOKEN = re.compile(r"^#?\d+$")


PERIOD_KEYWORDS = {
    "today": SummaryPeriod.TODAY,
    "week": SummaryPeriod.WEEK,
    "month": SummaryPeriod.MONTH,
    # German keywords, as typed with the /zeit-* commands
    "heute": SummaryPeriod.TODAY,
    "woche": SummaryPeriod.WEEK,
    "monat": SummaryPeriod.MONTH,
}


def normalize_command_name(command: str) -> str:
    """
    Reduce a slash command name to its verb.

    Example:
        >>> normalize_command_name("/zeit-start")
        'start'
        >>> normalize_command_name("/status")
        'status'
    """
    name = command.strip().lstrip("/").lower()
    if "-" in name:
        name = name.rsplit("-", 1)[1]
    return name


def parse_start_text(text: str) -> Intent:
    """
    Parse the argument of `start` into a project name and optional ticket.

    The last token is a ticket number only when it is preceded by at least
    one other token, so a single token is always a project name.

    Example:
        >>> parse_start_text("Website Redesign 42")
        StartIntent(project_name='Website Redesign', ticket_number=42)
        >>> parse_start_text("#12")
        StartIntent(project_name='#12', ticket_number=None)
    """
    tokens = text.split()
    if not tokens:
        return PromptProjectIntent()

    if len(tokens) > 1 and TICKET_TOKEN.match(tokens[-1]):
        return StartIntent(
            project_name=" ".join(tokens[:-1]),
            ticket_number=int(tokens[-1].lstrip("#")),
        )

    return StartIntent(project_name=text.strip())


def parse_summary_period(text: str) -> SummaryPeriod:
    """Select a summary period, falling back to today."""
    return PERIOD_KEYWORDS.get(text.strip().lower(), SummaryPeriod.TODAY)


def parse_command(command: str, text: str) -> Intent:
    """
    Turn a command name and its argument text into an intent.

    Args:
        command: Command name as sent by Slack (e.g. "/zeit-start")
        text: Free-form argument text

    Returns:
        Parsed intent
    """
    name = normalize_command_name(command)
    if name == "start":
        return parse_start_text(text)
    if name == "stop":
        return StopIntent()
    if name == "status":
        return StatusIntent()
    if name == "summary":
        return SummaryIntent(period=parse_summary_period(text))
    return UnknownCommandIntent(command=command)


def parse_slash_command(form: Mapping[str, str]) -> SlashCommand:
    """
    Extract the slash command fields from a decoded form body.

    Raises:
        ValidationError: If the command or user ID is missing
    """
    command = (form.get("command") or "").strip()
    user_id = (form.get("user_id") or "").strip()
    if not command or not user_id:
        raise ValidationError("Invalid payload")
    return SlashCommand(command=command, text=form.get("text") or "", user_id=user_id)


def parse_interaction(raw_payload: str | None) -> Action:
    """
    Parse the JSON `payload` field of an interactive callback.

    Args:
        raw_payload: JSON string from the form-encoded body

    Returns:
        StopAction, StartProjectAction or UnsupportedAction

    Raises:
        ValidationError: If the payload is not JSON or has no acting user
    """
    if not raw_payload:
        raise ValidationError("Missing payload")

    try:
        payload: Any = json.loads(raw_payload)
    except ValueError:
        raise ValidationError("Payload is not valid JSON")

    if not isinstance(payload, dict):
        raise ValidationError("Payload must be an object")

    user = payload.get("user")
    user_id = user.get("id") if isinstance(user, dict) else None
    if not isinstance(user_id, str) or not user_id:
        raise ValidationError("Payload has no user")

    response_url = payload.get("response_url")
    if not isinstance(response_url, str) or not response_url:
        response_url = None

    if payload.get("type") != "block_actions":
        return UnsupportedAction(
            user_id=user_id,
            reason=f"interaction type {payload.get('type')!r}",
            response_url=response_url,
        )

    actions = payload.get("actions")
    if not isinstance(actions, list) or not actions or not isinstance(actions[0], dict):
        return UnsupportedAction(user_id=user_id, reason="no actions", response_url=response_url)

    action = actions[0]
    action_id = action.get("action_id")
    value = action.get("value")

    if action_id == STOP_TIMER_ACTION:
        return StopAction(user_id=user_id, response_url=response_url)

    if action_id == START_PROJECT_ACTION:
        if not isinstance(value, str) or not value:
            raise ValidationError("start_project action has no project")
        return StartProjectAction(user_id=user_id, project_id=value, response_url=response_url)

    return UnsupportedAction(
        user_id=user_id,
        reason=f"action {action_id!r}",
        response_url=response_url,
    )
