from __future__ import annotations

import logging

import apprise

from ..config import BroadcastChannelConfig
from ..models import NotificationData, RenderedNotification
from ..templating import render_template
from .types import ChannelAdapter, ChannelDeliveryError

LOGGER = logging.getLogger(__name__)


class BroadcastAdapter(ChannelAdapter[BroadcastChannelConfig]):
    """Fan a title/body pair out to notification URLs via apprise."""

    name = "broadcast"

    def has_target(self, config: BroadcastChannelConfig) -> bool:
        return bool(config.urls)

    def render(self, config: BroadcastChannelConfig, data: NotificationData) -> RenderedNotification:
        templates = config.templates
        return RenderedNotification(
            title=render_template(templates.title, data),
            body=render_template(templates.body, data),
        )

    def build_sender(self, urls: list[str]) -> apprise.Apprise:
        sender = apprise.Apprise()
        for url in urls:
            if not sender.add(url):
                raise ChannelDeliveryError(self.name, "unsupported notification URL")
        return sender

    def send(self, config: BroadcastChannelConfig, rendered: RenderedNotification) -> None:
        if not self.has_target(config):
            LOGGER.debug("Broadcast channel has no URLs; nothing to send")
            return
        sender = self.build_sender(config.urls)
        if not sender.notify(title=rendered.title, body=str(rendered.body)):
            raise ChannelDeliveryError(self.name, f"delivery failed for one or more of {len(config.urls)} URL(s)")
        LOGGER.debug("Broadcast delivered to %d URL(s)", len(config.urls))
