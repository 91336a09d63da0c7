"""Shared data passed to command handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models import ChannelContext, CommandRequest
from .registry import CommandSpec

if TYPE_CHECKING:
    from ...chat_adapters.i_chat_adapter import IResponder


@dataclass(frozen=True)
class CommandContext:
    request: CommandRequest
    spec: CommandSpec
    channel: ChannelContext
    responder: "IResponder"
