"""Notification delivery through a chat bot and its RPC entry point."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from tavola.errors import ApiError, StatusCode


class MessageBot(Protocol):
    """A chat bot able to post a text message to a chat."""

    def send(self, chat_id: int, text: str) -> Any: ...


class _NotifySender(Protocol):
    def send(self, recipient: str, message: str) -> None: ...


def format_message(recipient: str, message: str) -> str:
    """Text posted to the stub chat on behalf of a recipient."""
    return f"Recipient_{recipient}_message:{message}"


class StubSender:
    """Delivers every notification to one fixed chat, tagged with the real recipient."""

    def __init__(
        self, bot: MessageBot, stub_recipient: int, log: logging.Logger | None = None
    ) -> None:
        self.bot = bot
        self.stub_recipient = stub_recipient
        self.log = log or logging.getLogger(__name__)

    def send(self, recipient: str, message: str) -> None:
        self.log.info("Start sending Notify recipient=%s message=%s", recipient, message)
        try:
            self.bot.send(self.stub_recipient, format_message(recipient, message))
        except Exception:
            self.log.info("Error while sending notify")
            raise


class NotifyAPI:
    """RPC handlers of the notification service."""

    def __init__(self, notifyer: _NotifySender) -> None:
        self.notifyer = notifyer

    def send(self, phone: str, data: str) -> dict[str, Any]:
        """Send data to phone; any delivery failure becomes an INTERNAL ApiError."""
        try:
            self.notifyer.send(phone, data)
        except Exception as exc:
            raise ApiError(StatusCode.INTERNAL, str(exc)) from exc
        return {}