# gxregistry/bot.py
"""
Chat command trigger.

Handles the registry's chat commands independently of the chat network:

    !gx pub <name> <hash>    publish hash under name, author = sender
    !gx info <name>          show the live entry for name

Malformed commands are ignored without a reply.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .service import RegistryService

logger = logging.getLogger(__name__)


@dataclass
class Message:
    """An inbound chat message."""
    sender: str
    target: str
    content: str


@dataclass
class Reply:
    """An outbound chat message."""
    target: str
    text: str


class CommandHandler:
    """Turns chat messages into registry operations."""

    def __init__(self, service: RegistryService, prefix: str = "!gx"):
        self.service = service
        self.prefix = prefix

    def matches(self, message: Message) -> bool:
        return message.content.startswith(self.prefix + " ")

    def handle(self, message: Message) -> Optional[Reply]:
        """
        Handle a message.

        Returns:
            Reply to send, or None when the message needs no reply
        """
        if not self.matches(message):
            return None

        parts = message.content.split(" ")
        command = parts[1]
        if command == "pub":
            if len(parts) != 4:
                return None
            name, address = parts[2], parts[3]
            if not name or not address:
                return None
            result = self.service.publish(name, address, author=message.sender)
            return Reply(message.target, result.message)

        if command == "info":
            if len(parts) != 3:
                return None
            entry = self.service.get(parts[2])
            if entry is None:
                return Reply(message.target, f"no such package: {parts[2]}")
            return Reply(
                message.target,
                f"{entry.name}: {entry.content_address} (author {entry.author})",
            )

        logger.error(f"unrecognized command: {command}")
        return None
