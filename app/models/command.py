"""Parsed chat commands and button actions.

Every inbound Slack request is turned into exactly one of these variants by
a single parsing step, and the dispatcher matches on the variant type.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# Button action IDs
STOP_TIMER_ACTION = "stop_timer"
START_PROJECT_ACTION = "start_project"


class SummaryPeriod(str, Enum):
    """Summary periods."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class SlashCommand:
    """Form fields of a slash command request."""

    command: str
    text: str
    user_id: str


# Slash command intents


@dataclass(frozen=True)
class PromptProjectIntent:
    """`start` without arguments: offer a project picker."""


@dataclass(frozen=True)
class StartIntent:
    project_name: str
    ticket_number: Optional[int] = None


@dataclass(frozen=True)
class StopIntent:
    pass


@dataclass(frozen=True)
class StatusIntent:
    pass


@dataclass(frozen=True)
class SummaryIntent:
    period: SummaryPeriod = SummaryPeriod.TODAY


@dataclass(frozen=True)
class UnknownCommandIntent:
    command: str


Intent = Union[
    PromptProjectIntent,
    StartIntent,
    StopIntent,
    StatusIntent,
    SummaryIntent,
    UnknownCommandIntent,
]


# Interactive callback actions


@dataclass(frozen=True)
class StopAction:
    user_id: str
    response_url: Optional[str] = None


@dataclass(frozen=True)
class StartProjectAction:
    user_id: str
    project_id: str
    response_url: Optional[str] = None


@dataclass(frozen=True)
class UnsupportedAction:
    user_id: str
    reason: str
    response_url: Optional[str] = None


Action = Union[StopAction, StartProjectAction, UnsupportedAction]
