"""Slack endpoints - slash commands and interactive callbacks."""
from urllib.parse import parse_qsl

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from app.config import settings
from app.database import get_identity_credential, get_timer_credential
from app.errors import AuthenticationError, ValidationError
from app.services import response_builder
from app.services.command_parser import parse_interaction, parse_slash_command
from app.services.dispatcher import CommandDispatcher
from app.services.identity_service import IdentityResolver
from app.services.slack_api import get_slack_client
from app.services.timer_service import TimerService
from app.utils.signature import verify_slack_signature
from app.utils.slack_format import ephemeral_response

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/slack", tags=["slack"])

SIGNATURE_HEADER = "X-Slack-Signature"
TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"


async def verified_body(request: Request) -> bytes:
    """
    Dependency returning the raw request body once its signature is verified.

    Raises:
        HTTPException: 500 if no signing secret is configured, 401 if the
            signature or timestamp is invalid
    """
    secret = settings.slack_signing_secret
    if not secret:
        logger.error("slack.signing_secret_missing")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )

    body = await request.body()
    try:
        verify_slack_signature(
            body,
            request.headers.get(SIGNATURE_HEADER),
            request.headers.get(TIMESTAMP_HEADER),
            secret,
            max_age_seconds=settings.signature_max_age_seconds,
        )
    except AuthenticationError as e:
        logger.warning("slack.signature_rejected", reason=e.message)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature",
        )

    return body


async def get_dispatcher(
    timer_db=Depends(get_timer_credential),
    identity_db=Depends(get_identity_credential),
    slack_client=Depends(get_slack_client),
) -> CommandDispatcher:
    """Dependency wiring the dispatcher with explicitly scoped credentials."""
    return CommandDispatcher(
        timers=TimerService(timer_db, settings.timezone),
        identities=IdentityResolver(identity_db, slack_client),
        slack_client=slack_client,
        picker_limit=settings.project_picker_limit,
    )


def decode_form(body: bytes) -> dict[str, str]:
    """
    Decode a form-encoded body, keeping the first value of each field.

    Raises:
        ValidationError: If the body is not UTF-8
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("Invalid payload encoding")

    form: dict[str, str] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        form.setdefault(key, value)
    return form


@router.post("/commands")
async def slash_command(
    body: bytes = Depends(verified_body),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """
    Handle a slash command.

    - Requires a valid Slack signature
    - Replies ephemerally with structured blocks
    """
    try:
        command = parse_slash_command(decode_form(body))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    try:
        message = await dispatcher.handle_command(command)
    except Exception:
        logger.exception("slack.command_failed", command=command.command)
        message = response_builder.generic_error()

    return ephemeral_response(message)


@router.post("/interactive")
async def interactive(
    background_tasks: BackgroundTasks,
    body: bytes = Depends(verified_body),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """
    Handle a button press.

    - Requires a valid Slack signature
    - Replaces the original message via response_url after responding
    - Always acknowledges with {"ok": true}
    """
    try:
        action = parse_interaction(decode_form(body).get("payload"))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    try:
        message = await dispatcher.handle_action(action)
    except Exception:
        logger.exception("slack.action_failed", action=type(action).__name__)
        message = response_builder.generic_error()

    if message is not None and action.response_url:
        background_tasks.add_task(dispatcher.deliver_replacement, action.response_url, message)

    return {"ok": True}
