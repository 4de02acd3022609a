from __future__ import annotations

import logging
from typing import Any

import requests

from ..config import BarkChannelConfig
from ..models import NotificationData, RenderedNotification
from ..templating import render_template
from .types import ChannelAdapter

LOGGER = logging.getLogger(__name__)

BARK_PUSH_URL = "https://api.day.app/push"
DEFAULT_GROUP = "Skland Notification"
DEFAULT_LEVEL = "timeSensitive"
DEFAULT_URL = "skland://"


class BarkAdapter(ChannelAdapter[BarkChannelConfig]):
    """Bark push: one batched request for every configured device key."""

    name = "bark"

    def __init__(self, *, timeout: float = 10) -> None:
        self.timeout = timeout

    def has_target(self, config: BarkChannelConfig) -> bool:
        return bool(config.tokens)

    def render(self, config: BarkChannelConfig, data: NotificationData) -> RenderedNotification:
        templates = config.templates
        return RenderedNotification(
            title=render_template(templates.title, data),
            subtitle=render_template(templates.subtitle, data),
            body=render_template(templates.body, data),
        )

    def build_payload(self, config: BarkChannelConfig, rendered: RenderedNotification) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "device_keys": list(config.tokens),
            "title": rendered.title,
            "subtitle": rendered.subtitle,
            "markdown": rendered.body,
            "group": config.group or DEFAULT_GROUP,
            "level": config.level or DEFAULT_LEVEL,
            "url": config.url or DEFAULT_URL,
        }
        if config.icon:
            payload["icon"] = config.icon
        if config.sound:
            payload["sound"] = config.sound
        payload.update(rendered.extra)
        return payload

    def send(self, config: BarkChannelConfig, rendered: RenderedNotification) -> None:
        if not self.has_target(config):
            LOGGER.debug("Bark channel has no device keys; nothing to send")
            return
        payload = self.build_payload(config, rendered)
        response = requests.post(BARK_PUSH_URL, json=payload, timeout=self.timeout)
        response.raise_for_status()
        LOGGER.debug("Bark push accepted for %d device(s)", len(config.tokens))
