from __future__ import annotations

import logging

import requests

from ..config import WebhookChannelConfig
from ..models import NotificationData, RenderedNotification
from ..templating import render_template
from .types import ChannelAdapter

LOGGER = logging.getLogger(__name__)


class WebhookAdapter(ChannelAdapter[WebhookChannelConfig]):
    """Generic webhook that sends the rendered body as a JSON document."""

    name = "webhook"

    def __init__(self, *, timeout: float = 10) -> None:
        self.timeout = timeout

    def has_target(self, config: WebhookChannelConfig) -> bool:
        return bool(config.url)

    def render(self, config: WebhookChannelConfig, data: NotificationData) -> RenderedNotification:
        return RenderedNotification(title="", body=render_template(config.templates.body, data))

    def send(self, config: WebhookChannelConfig, rendered: RenderedNotification) -> None:
        if not self.has_target(config):
            LOGGER.debug("Webhook channel has no URL; nothing to send")
            return
        response = requests.request(
            config.method,
            config.url,
            json=rendered.body,
            headers=config.headers or None,
            timeout=self.timeout,
        )
        response.raise_for_status()
        LOGGER.debug("Webhook %s %s responded with %s", config.method, config.url, response.status_code)
