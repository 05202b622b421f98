"""Conversation schemas.

Models:
- Role: who produced a turn
- Turn: one rendered User or Assistant unit
- StrategyName: identifiers of the three extraction strategies
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "User"
    ASSISTANT = "Assistant"


class StrategyName(str, Enum):
    """Extraction strategies, referenced by the configured priority list."""

    DIRECT_SCAN = "direct_scan"
    EXPORT_CAPTURE = "export_capture"
    COPY_AFFORDANCE = "copy_affordance"


class Turn(BaseModel):
    """A single conversation turn with Markdown content.

    Turns are immutable once produced; strategies return them in
    conversation order.
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> Turn:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Turn:
        return cls(role=Role.ASSISTANT, content=content)
