"""Notification layer for the daily check-in runner.

- **models**: run snapshot (accounts, games, logs, outcome)
- **templating**: ``{{dotted.path}}`` string templates and function templates
- **message_templates**: built-in titles and message bodies
- **config**: channel configurations and YAML loading
- **notifications**: channel adapters and the ``NotificationManager``
- **collector**: backward-compatible ``MessageCollector`` facade
"""

from .collector import MessageCollector, create_message_collector
from .config import (
    BarkChannelConfig,
    BroadcastChannelConfig,
    WebhookChannelConfig,
    bark_channel,
    broadcast_channel,
    load_channels,
)
from .models import ExecutionResult, LogLevel, NotificationData
from .notifications import NotificationManager, create_notification_manager

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "BarkChannelConfig",
    "BroadcastChannelConfig",
    "ExecutionResult",
    "LogLevel",
    "MessageCollector",
    "NotificationData",
    "NotificationManager",
    "WebhookChannelConfig",
    "bark_channel",
    "broadcast_channel",
    "create_message_collector",
    "create_notification_manager",
    "load_channels",
]
