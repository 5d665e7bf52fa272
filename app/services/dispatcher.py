"""Command dispatcher - runs slash commands and button actions."""
from typing import Optional

import structlog

from app.errors import (
    AppError,
    ConflictError,
    IdentityNotFound,
    NoActiveEntryError,
    NotFoundError,
    StoreError,
)
from app.models.command import (
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
    UnknownCommandIntent,
    UnsupportedAction,
)
from app.models.message import Message
from app.services import response_builder
from app.services.command_parser import parse_command
from app.services.identity_service import IdentityResolver
from app.services.slack_api import SlackApiClient, SlackApiError
from app.services.timer_service import TimerService
from app.utils.slack_format import replace_original_payload

logger = structlog.get_logger(__name__)


class CommandDispatcher:
    """Turns parsed Slack requests into timer operations and reply messages."""

    def __init__(
        self,
        timers: TimerService,
        identities: IdentityResolver,
        slack_client: SlackApiClient,
        picker_limit: int = 5,
    ):
        self.timers = timers
        self.identities = identities
        self.slack_client = slack_client
        self.picker_limit = picker_limit

    async def handle_command(self, command: SlashCommand) -> Message:
        """
        Run a slash command for the Slack user who sent it.

        Domain failures are turned into user-facing messages; nothing in
        AppError's hierarchy escapes this method.

        Args:
            command: Parsed slash command fields

        Returns:
            Reply message
        """
        intent = parse_command(command.command, command.text)
        if isinstance(intent, UnknownCommandIntent):
            return response_builder.unknown_command(intent.command)

        user_id: Optional[str] = None
        try:
            user_id = await self.identities.resolve(command.user_id)
            return await self._run_intent(user_id, intent)
        except AppError as e:
            return await self._error_message(e, user_id)

    async def _run_intent(self, user_id: str, intent: Intent) -> Message:
        match intent:
            case PromptProjectIntent():
                projects = await self.timers.project_service.list_recent_projects(
                    self.picker_limit
                )
                return response_builder.project_picker(projects)
            case StartIntent(project_name=project_name, ticket_number=ticket_number):
                running = await self.timers.start_by_name(user_id, project_name, ticket_number)
                return response_builder.timer_started(running)
            case StopIntent():
                return await self._stop(user_id)
            case StatusIntent():
                running = await self.timers.get_running_entry(user_id)
                if running is None:
                    return response_builder.nothing_running()
                return response_builder.timer_status(running)
            case SummaryIntent(period=period):
                summary = await self.timers.summary(user_id, period)
                return response_builder.time_summary(summary)
            case UnknownCommandIntent(command=name):
                return response_builder.unknown_command(name)
            case _:
                raise TypeError(f"Unhandled intent: {intent!r}")

    async def handle_action(self, action: Action) -> Optional[Message]:
        """
        Run a button action.

        Returns:
            Replacement message for the original one, or None when the
            action is not one this service handles
        """
        if isinstance(action, UnsupportedAction):
            logger.info("slack.action_ignored", reason=action.reason)
            return None

        user_id: Optional[str] = None
        try:
            user_id = await self.identities.resolve(action.user_id)
            match action:
                case StopAction():
                    return await self._stop(user_id)
                case StartProjectAction(project_id=project_id):
                    running = await self.timers.start_by_project_id(user_id, project_id)
                    return response_builder.timer_started(running)
                case _:
                    raise TypeError(f"Unhandled action: {action!r}")
        except AppError as e:
            return await self._error_message(e, user_id)

    async def _stop(self, user_id: str) -> Message:
        entry = await self.timers.stop_timer(user_id)
        try:
            project_name = await self.timers.project_service.get_project_name(entry.project_id)
        except StoreError:
            # The timer is already stopped; only the label is missing.
            project_name = None
        return response_builder.timer_stopped(entry, project_name)

    async def _error_message(self, error: AppError, user_id: Optional[str]) -> Message:
        match error:
            case IdentityNotFound():
                return response_builder.identity_not_linked()
            case ConflictError():
                return response_builder.already_running(await self._running_or_none(user_id))
            case NotFoundError():
                return response_builder.not_found(error.message)
            case NoActiveEntryError():
                return response_builder.nothing_running()
            case StoreError():
                return response_builder.generic_error()
            case _:
                logger.error("slack.unexpected_app_error", error=str(error))
                return response_builder.generic_error()

    async def _running_or_none(self, user_id: Optional[str]):
        if user_id is None:
            return None
        try:
            return await self.timers.get_running_entry(user_id)
        except StoreError:
            return None

    async def deliver_replacement(self, response_url: str, message: Message) -> None:
        """
        Replace the original message at response_url. Best effort, one attempt.

        Failures are logged and never raised: the interaction has already
        been acknowledged.
        """
        try:
            await self.slack_client.post_response_url(
                response_url, replace_original_payload(message)
            )
        except SlackApiError as e:
            logger.warning(
                "slack.replacement_failed",
                error=str(e),
                status_code=e.status_code,
            )
