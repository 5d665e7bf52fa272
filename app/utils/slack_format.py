"""Render platform-agnostic messages as Slack Block Kit JSON."""
from typing import Any

from app.models.message import (
    ActionsBlock,
    Block,
    Button,
    DividerBlock,
    HeaderBlock,
    Message,
    SectionBlock,
)


def _plain_text(text: str) -> dict[str, Any]:
    return {"type": "plain_text", "text": text, "emoji": True}


def render_button(button: Button) -> dict[str, Any]:
    rendered: dict[str, Any] = {
        "type": "button",
        "text": _plain_text(button.text),
        "action_id": button.action_id,
        "value": button.value,
    }
    if button.style:
        rendered["style"] = button.style
    return rendered


def render_block(block: Block) -> dict[str, Any]:
    """Render a single block."""
    if isinstance(block, HeaderBlock):
        return {"type": "header", "text": _plain_text(block.text)}
    if isinstance(block, SectionBlock):
        return {"type": "section", "text": {"type": "mrkdwn", "text": block.text}}
    if isinstance(block, DividerBlock):
        return {"type": "divider"}
    if isinstance(block, ActionsBlock):
        return {
            "type": "actions",
            "elements": [render_button(button) for button in block.elements],
        }
    raise TypeError(f"Unsupported block type: {type(block).__name__}")


def render_blocks(message: Message) -> list[dict[str, Any]]:
    return [render_block(block) for block in message.blocks]


def ephemeral_response(message: Message) -> dict[str, Any]:
    """Body of an immediate slash command reply visible only to the caller."""
    return {
        "response_type": "ephemeral",
        "text": message.text,
        "blocks": render_blocks(message),
    }


def replace_original_payload(message: Message) -> dict[str, Any]:
    """Body POSTed to a response_url to overwrite the original message."""
    return {
        "replace_original": True,
        "text": message.text,
        "blocks": render_blocks(message),
    }
