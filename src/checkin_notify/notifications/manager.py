from __future__ import annotations

import copy
import dataclasses
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Optional

import requests
from rich.console import Console

from ..config import (
    BarkChannelConfig,
    BroadcastChannelConfig,
    CHANNEL_TYPES,
    ChannelConfig,
    WebhookChannelConfig,
)
from ..logging_utils import LogBlockBuilder
from ..models import (
    AccountStats,
    ExecutionResult,
    GameStats,
    LogEntry,
    LogLevel,
    NotificationData,
    RenderedNotification,
)
from ..summary_table import SummaryTableRenderer
from ..utils import excerpt_response
from .bark import BarkAdapter
from .broadcast import BroadcastAdapter
from .types import ChannelAdapter
from .webhook import WebhookAdapter

LOGGER = logging.getLogger(__name__)

_ACCOUNT_FIELDS = frozenset(item.name for item in dataclasses.fields(AccountStats))
_GAME_FIELDS = frozenset(item.name for item in dataclasses.fields(GameStats)) - {"game_id", "game_name"}


def default_adapters() -> dict[type[ChannelConfig], ChannelAdapter[Any]]:
    return {
        BarkChannelConfig: BarkAdapter(),
        BroadcastChannelConfig: BroadcastAdapter(),
        WebhookChannelConfig: WebhookAdapter(),
    }


class NotificationManager:
    """Collects the results of a check-in run and pushes them to every configured channel.

    The manager exclusively owns the :class:`NotificationData` snapshot. Business
    logic mutates it through the methods below while the run is in progress and
    calls :meth:`push` once at the end. ``get_data`` hands out copies so the
    snapshot is never aliased outside the manager.
    """

    def __init__(
        self,
        channels: Iterable[ChannelConfig] = (),
        *,
        adapters: Optional[Mapping[type[ChannelConfig], ChannelAdapter[Any]]] = None,
    ) -> None:
        self._adapters = dict(adapters) if adapters is not None else default_adapters()
        self._channels = tuple(channels)
        for config in self._channels:
            if type(config) not in self._adapters:
                raise TypeError(f"No adapter registered for channel config {type(config).__name__}")
        self._data = NotificationData()
        self._last_log_at: Optional[datetime] = None

    @property
    def channels(self) -> tuple[ChannelConfig, ...]:
        return self._channels

    # --- snapshot access -------------------------------------------------

    def get_data(self) -> NotificationData:
        return copy.deepcopy(self._data)

    def has_error(self) -> bool:
        return self._data.meta.has_error

    def set_result(self, result: ExecutionResult | str) -> None:
        self._data.meta.execution_result = ExecutionResult(result)

    def mark_error(self) -> None:
        self._data.meta.has_error = True

    # --- statistics ------------------------------------------------------

    def update_account_stats(self, **fields: Any) -> None:
        """Overwrite the given account counters. Values are not accumulated."""
        unknown = set(fields) - _ACCOUNT_FIELDS
        if unknown:
            raise ValueError(f"Unknown account stats field(s): {', '.join(sorted(unknown))}")
        accounts = self._data.accounts
        for name, value in fields.items():
            setattr(accounts, name, list(value) if name == "failed_indexes" else value)

    def get_game_stats(self, game_id: int) -> Optional[GameStats]:
        game = self._data.find_game(game_id)
        return copy.copy(game) if game is not None else None

    def ensure_game_stats(self, game_id: int, game_name: str) -> GameStats:
        game = self._data.find_game(game_id)
        if game is None:
            game = GameStats(game_id=game_id, game_name=game_name)
            self._data.games.append(game)
        return copy.copy(game)

    def update_game_stats(self, game_id: int, game_name: str, **fields: Any) -> None:
        unknown = set(fields) - _GAME_FIELDS
        if unknown:
            raise ValueError(f"Unsupported game stats field(s): {', '.join(sorted(unknown))}")
        self.ensure_game_stats(game_id, game_name)
        game = self._data.find_game(game_id)
        for name, value in fields.items():
            setattr(game, name, value)

    # --- logs --------------------------------------------------------------

    def _next_timestamp(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self._last_log_at is not None and now < self._last_log_at:
            now = self._last_log_at
        self._last_log_at = now
        return now

    def add_log(
        self,
        account_number: int,
        level: LogLevel | str,
        message: str,
        *,
        game_id: Optional[int] = None,
    ) -> None:
        entry = LogEntry(
            account_number=account_number,
            level=LogLevel(level),
            message=message,
            game_id=game_id,
            timestamp=self._next_timestamp(),
        )
        self._data.logs.append(entry)
        if entry.level is LogLevel.ERROR:
            self.mark_error()

    def log(self, message: str) -> None:
        """Console output only; not collected into the notification."""
        LOGGER.info("%s", message)

    def error(self, message: str) -> None:
        """Console error output; not collected, but flags the run as errored."""
        LOGGER.error("%s", message)
        self.mark_error()

    # --- rendering & dispatch ----------------------------------------------

    def render_for_channel(self, kind: str) -> Optional[RenderedNotification]:
        """Render the first configured channel of ``kind`` without sending it."""
        config_cls = CHANNEL_TYPES.get(kind.lower())
        for config in self._channels:
            if config_cls is not None and type(config) is config_cls:
                return self._adapters[config_cls].render(config, copy.deepcopy(self._data))
        return None

    def render_summary(self, console: Optional[Console] = None) -> None:
        SummaryTableRenderer(console).render(self._data)

    def push(self) -> None:
        """Render and send to every eligible channel, one after another.

        A failing channel is logged and skipped; it never stops the remaining
        channels and nothing is raised to the caller.
        """
        snapshot = copy.deepcopy(self._data)
        result = snapshot.meta.execution_result
        sent: list[str] = []
        skipped: list[str] = []
        failed: list[str] = []

        for index, config in enumerate(self._channels):
            adapter = self._adapters[type(config)]
            label = f"{adapter.name}#{index}"
            if not config.enabled:
                LOGGER.debug("Channel %s is disabled", label)
                skipped.append(label)
                continue
            if not config.should_send(result):
                LOGGER.debug("Channel %s does not fire for %s runs", label, result.value)
                skipped.append(label)
                continue
            if not adapter.has_target(config):
                LOGGER.debug("Channel %s has no recipients", label)
                skipped.append(label)
                continue
            try:
                rendered = adapter.render(config, snapshot)
                adapter.send(config, rendered)
            except Exception as exc:  # noqa: BLE001
                LOGGER.warning("Notification channel %s failed: %s", label, exc)
                if isinstance(exc, requests.HTTPError) and exc.response is not None:
                    LOGGER.warning("Channel %s response body: %s", label, excerpt_response(exc.response))
                LOGGER.debug("Channel %s failure details", label, exc_info=True)
                failed.append(label)
            else:
                sent.append(label)

        builder = LogBlockBuilder("Notification Dispatch")
        builder.add_fields(
            [
                ("Result", result.value),
                ("Sent", sent),
                ("Skipped", skipped),
                ("Failed", failed),
            ]
        )
        LOGGER.info("%s", builder.render())


def create_notification_manager(channels: Iterable[ChannelConfig] = ()) -> NotificationManager:
    return NotificationManager(channels)
