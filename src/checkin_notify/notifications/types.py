from __future__ import annotations

from typing import Generic, TypeVar

from ..config import ChannelConfig
from ..models import NotificationData, RenderedNotification

ConfigT = TypeVar("ConfigT", bound=ChannelConfig)


class NotificationError(RuntimeError):
    """Base class for notification delivery errors."""


class ChannelDeliveryError(NotificationError):
    """Raised when a provider rejects or fails to deliver a notification."""

    def __init__(self, channel: str, message: str) -> None:
        super().__init__(f"{channel}: {message}")
        self.channel = channel


class ChannelAdapter(Generic[ConfigT]):
    """Translates a run snapshot into a provider request for one channel kind.

    ``render`` must not mutate the snapshot. ``send`` lets transport errors
    propagate; the manager's dispatch loop is the only place they are caught.
    """

    name: str = "channel"

    def has_target(self, config: ConfigT) -> bool:
        """Whether ``config`` names anyone to deliver to."""
        return True

    def render(self, config: ConfigT, data: NotificationData) -> RenderedNotification:
        raise NotImplementedError

    def send(self, config: ConfigT, rendered: RenderedNotification) -> None:
        raise NotImplementedError
