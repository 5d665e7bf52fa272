"""Structured reply messages, independent of any chat platform."""
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class HeaderBlock(BaseModel):
    type: Literal["header"] = "header"
    text: str


class SectionBlock(BaseModel):
    """Section with markdown text."""

    type: Literal["section"] = "section"
    text: str


class DividerBlock(BaseModel):
    type: Literal["divider"] = "divider"


class Button(BaseModel):
    """Button carrying an opaque action id and value."""

    type: Literal["button"] = "button"
    text: str
    action_id: str
    value: str
    style: Optional[Literal["primary", "danger"]] = None


class ActionsBlock(BaseModel):
    type: Literal["actions"] = "actions"
    elements: list[Button]


Block = Union[HeaderBlock, SectionBlock, DividerBlock, ActionsBlock]


class Message(BaseModel):
    """Ordered blocks plus the flat text shown where blocks are not rendered."""

    text: str
    blocks: list[Block] = Field(default_factory=list)

    @classmethod
    def from_blocks(cls, blocks: list[Block]) -> "Message":
        """Build a message whose fallback text is derived from its blocks."""
        return cls(text=fallback_text(blocks), blocks=blocks)


def fallback_text(blocks: list[Block]) -> str:
    """
    Join header and section texts into a plain-text fallback.

    Example:
        >>> fallback_text([HeaderBlock(text="Timer"), SectionBlock(text="Running")])
        'Timer\\nRunning'
    """
    parts = [
        block.text
        for block in blocks
        if isinstance(block, (HeaderBlock, SectionBlock))
    ]
    return "\n".join(parts)
