"""
Notification dispatch for check-in runs.

Public API:
    - NotificationManager: owns the run snapshot and pushes it to channels
    - ChannelAdapter: base class for channel adapters
    - BarkAdapter: Bark token push (https://api.day.app)
    - BroadcastAdapter: notification URLs delivered through apprise
    - WebhookAdapter: generic JSON webhook
    - NotificationError / ChannelDeliveryError: delivery failures
"""

from __future__ import annotations

from .types import ChannelAdapter, ChannelDeliveryError, NotificationError

from .bark import BarkAdapter
from .broadcast import BroadcastAdapter
from .webhook import WebhookAdapter

from .manager import NotificationManager, create_notification_manager, default_adapters

__all__ = [
    "ChannelAdapter",
    "ChannelDeliveryError",
    "NotificationError",
    "BarkAdapter",
    "BroadcastAdapter",
    "WebhookAdapter",
    "NotificationManager",
    "create_notification_manager",
    "default_adapters",
]
