"""Backward-compatible message collector.

Callers written against the flat ``log/notify/info/collect`` interface keep
working; every call is forwarded to a :class:`NotificationManager`. This module
holds no state of its own and can be removed once all callers use the manager
directly.
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Iterable
from typing import Optional, Union

from .config import ChannelConfig, bark_channel, broadcast_channel
from .models import ExecutionResult, LogLevel
from .notifications.manager import NotificationManager


def to_list(value: Union[str, Iterable[str], None]) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def build_legacy_channels(
    notification_urls: Union[str, Iterable[str], None] = None,
    bark_tokens: Optional[Iterable[str]] = None,
) -> list[ChannelConfig]:
    channels: list[ChannelConfig] = []
    urls = to_list(notification_urls)
    if urls:
        channels.append(broadcast_channel(urls, send_on=[ExecutionResult.SUCCESS, ExecutionResult.FAILED]))
    tokens = to_list(bark_tokens)
    if tokens:
        channels.append(bark_channel(tokens, send_on=list(ExecutionResult)))
    return channels


class MessageCollector:
    def __init__(self, manager: NotificationManager, on_error: Optional[Callable[[], None]] = None) -> None:
        self._manager = manager
        self._on_error = on_error

    def _add_message(self, message: str, is_error: bool = False) -> None:
        # The flat interface has no account context.
        self._manager.add_log(0, LogLevel.ERROR if is_error else LogLevel.INFO, message)

    # console only
    def log(self, message: str) -> None:
        self._manager.log(message)

    def error(self, message: str) -> None:
        self._manager.error(message)

    # notification only
    def notify(self, message: str) -> None:
        self._add_message(message)

    def notify_error(self, message: str) -> None:
        self._add_message(message, is_error=True)

    # console + notification
    def info(self, message: str) -> None:
        self._manager.log(message)
        self._add_message(message)

    def info_error(self, message: str) -> None:
        self._manager.error(message)
        self._add_message(message, is_error=True)

    def set_result(self, result: ExecutionResult | str) -> None:
        self._manager.set_result(result)

    def push(self) -> None:
        self._manager.push()
        if self._manager.has_error() and self._on_error is not None:
            self._on_error()

    def has_error(self) -> bool:
        return self._manager.has_error()

    def get_manager(self) -> NotificationManager:
        return self._manager

    def collect(self, message: str, *, output: bool = False, is_error: bool = False) -> None:
        """Deprecated: use :meth:`notify`, :meth:`info` or :meth:`notify_error`."""
        warnings.warn(
            "MessageCollector.collect() is deprecated; use notify(), info() or notify_error()",
            DeprecationWarning,
            stacklevel=2,
        )
        self._add_message(message, is_error)
        if output:
            if is_error:
                self._manager.error(message)
            else:
                self._manager.log(message)


def create_message_collector(
    notification_urls: Union[str, Iterable[str], None] = None,
    bark_tokens: Optional[Iterable[str]] = None,
    on_error: Optional[Callable[[], None]] = None,
) -> MessageCollector:
    manager = NotificationManager(build_legacy_channels(notification_urls, bark_tokens))
    return MessageCollector(manager, on_error)
