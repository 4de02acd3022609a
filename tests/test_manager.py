from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, List, Tuple
from unittest.mock import MagicMock

import pytest
import requests
from rich.console import Console

from checkin_notify.config import (
    CHANNEL_TYPES,
    BarkChannelConfig,
    BroadcastChannelConfig,
    BroadcastTemplates,
    ChannelConfig,
    WebhookChannelConfig,
)
from checkin_notify.models import ExecutionResult, LogLevel, RenderedNotification
from checkin_notify.notifications import BroadcastAdapter, NotificationManager, default_adapters
from checkin_notify.notifications.types import ChannelAdapter


class RecordingBroadcast(BroadcastAdapter):
    """Real rendering, recorded sending."""

    def __init__(self, calls: List[Tuple[str, RenderedNotification]]) -> None:
        self.calls = calls

    def send(self, config: BroadcastChannelConfig, rendered: RenderedNotification) -> None:
        self.calls.append((config.urls[0], rendered))


class FailingBroadcast(RecordingBroadcast):
    def send(self, config: BroadcastChannelConfig, rendered: RenderedNotification) -> None:
        if config.urls[0].startswith("broken"):
            raise requests.ConnectionError("provider unreachable")
        super().send(config, rendered)


def _channel(name: str, *send_on: ExecutionResult, enabled: bool = True) -> BroadcastChannelConfig:
    return BroadcastChannelConfig(
        urls=[name],
        enabled=enabled,
        send_on=frozenset(send_on) if send_on else None,
    )


def _manager(channels, calls, adapter_cls=RecordingBroadcast) -> NotificationManager:
    return NotificationManager(channels, adapters={BroadcastChannelConfig: adapter_cls(calls)})


class TestSnapshot:
    def test_initial_state(self) -> None:
        data = NotificationManager().get_data()

        assert data.meta.execution_result is ExecutionResult.SUCCESS
        assert data.meta.has_error is False
        assert data.accounts.total == 0
        assert data.accounts.failed_indexes == []
        assert data.games == []
        assert data.logs == []

    def test_get_data_returns_a_copy(self) -> None:
        manager = NotificationManager()
        manager.update_account_stats(total=2)

        copy = manager.get_data()
        copy.accounts.total = 99
        copy.games.append(MagicMock())

        assert manager.get_data().accounts.total == 2
        assert manager.get_data().games == []

    def test_set_result_last_call_wins(self) -> None:
        manager = NotificationManager()
        manager.set_result(ExecutionResult.FAILED)
        manager.set_result("skipped")
        assert manager.get_data().meta.execution_result is ExecutionResult.SKIPPED

    def test_set_result_rejects_unknown_values(self) -> None:
        with pytest.raises(ValueError):
            NotificationManager().set_result("partial")


class TestStatistics:
    def test_account_stats_overwrite_instead_of_accumulating(self) -> None:
        manager = NotificationManager()
        manager.update_account_stats(total=3, successful=1)
        manager.update_account_stats(total=2)

        accounts = manager.get_data().accounts
        assert accounts.total == 2
        assert accounts.successful == 1

    def test_failed_indexes_are_copied(self) -> None:
        manager = NotificationManager()
        indexes = [1, 3]
        manager.update_account_stats(failed=2, failed_indexes=indexes)
        indexes.append(5)

        assert manager.get_data().accounts.failed_indexes == [1, 3]

    def test_unknown_account_field_raises(self) -> None:
        with pytest.raises(ValueError, match="bogus"):
            NotificationManager().update_account_stats(bogus=1)

    def test_repeated_game_updates_keep_one_entry(self) -> None:
        manager = NotificationManager()
        manager.update_game_stats(1, "Arknights", total=3)
        manager.update_game_stats(1, "Other name", succeeded=2)
        manager.update_game_stats(1, "Arknights", total=4)

        games = manager.get_data().games
        assert len(games) == 1
        assert games[0].game_name == "Arknights"
        assert games[0].total == 4
        assert games[0].succeeded == 2
        assert games[0].failed == 0

    def test_ensure_game_stats_is_idempotent_and_ordered(self) -> None:
        manager = NotificationManager()
        first = manager.ensure_game_stats(2, "Endfield")
        manager.ensure_game_stats(1, "Arknights")
        again = manager.ensure_game_stats(2, "Renamed")

        assert first == again
        assert again.game_name == "Endfield"
        assert [game.game_id for game in manager.get_data().games] == [2, 1]

    def test_get_game_stats(self) -> None:
        manager = NotificationManager()
        assert manager.get_game_stats(1) is None
        manager.update_game_stats(1, "Arknights", already_attended=2)
        assert manager.get_game_stats(1).already_attended == 2

    def test_unsupported_game_field_raises(self) -> None:
        with pytest.raises(ValueError, match="bogus"):
            NotificationManager().update_game_stats(1, "Arknights", bogus=1)


class TestLogsAndErrors:
    def test_error_log_marks_run(self) -> None:
        manager = NotificationManager()
        manager.add_log(1, LogLevel.INFO, "fine")
        assert manager.has_error() is False

        manager.add_log(1, "error", "sign-in rejected")
        assert manager.has_error() is True

    def test_error_flag_is_never_reset(self) -> None:
        manager = NotificationManager()
        manager.mark_error()
        manager.add_log(0, LogLevel.INFO, "later info")
        manager.set_result(ExecutionResult.SUCCESS)
        manager.update_account_stats(failed=0)
        manager.mark_error()
        assert manager.has_error() is True

    def test_log_entries_are_timestamped_in_order(self) -> None:
        manager = NotificationManager()
        for index in range(5):
            manager.add_log(index, LogLevel.WARNING, f"message {index}", game_id=1)

        logs = manager.get_data().logs
        timestamps = [entry.timestamp for entry in logs]
        assert timestamps == sorted(timestamps)
        assert logs[2].game_id == 1
        assert logs[2].level is LogLevel.WARNING

    def test_timestamps_never_go_backwards(self, monkeypatch) -> None:
        start = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
        readings = iter([start, start - timedelta(minutes=5), start + timedelta(seconds=1)])

        class SteppingClock(datetime):
            @classmethod
            def now(cls, tz=None):
                return next(readings)

        monkeypatch.setattr("checkin_notify.notifications.manager.datetime", SteppingClock)
        manager = NotificationManager()
        for message in ("first", "clock stepped back", "third"):
            manager.add_log(0, LogLevel.INFO, message)

        assert [entry.timestamp for entry in manager.get_data().logs] == [
            start,
            start,
            start + timedelta(seconds=1),
        ]

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError):
            NotificationManager().add_log(0, "fatal", "nope")

    def test_console_output_is_not_collected(self, caplog) -> None:
        manager = NotificationManager()
        with caplog.at_level(logging.INFO, logger="checkin_notify.notifications.manager"):
            manager.log("starting run")
            manager.error("token expired")

        assert manager.get_data().logs == []
        assert manager.has_error() is True
        assert "starting run" in caplog.text
        assert any(record.levelno == logging.ERROR and record.getMessage() == "token expired" for record in caplog.records)


class TestPush:
    def test_dispatches_only_matching_channels(self) -> None:
        calls: List[Tuple[str, Any]] = []
        manager = _manager(
            [
                _channel("a", ExecutionResult.SUCCESS, ExecutionResult.FAILED),
                _channel("b", ExecutionResult.SKIPPED),
            ],
            calls,
        )
        manager.set_result(ExecutionResult.SKIPPED)

        manager.push()

        assert [url for url, _ in calls] == ["b"]

    def test_default_send_on_skips_skipped_runs(self) -> None:
        calls: List[Tuple[str, Any]] = []
        manager = _manager([_channel("a")], calls)
        manager.set_result(ExecutionResult.SKIPPED)
        manager.push()
        assert calls == []

        manager.set_result(ExecutionResult.FAILED)
        manager.push()
        assert [url for url, _ in calls] == ["a"]

    def test_disabled_channels_are_skipped(self) -> None:
        calls: List[Tuple[str, Any]] = []
        manager = _manager([_channel("a", enabled=False), _channel("b")], calls)
        manager.push()
        assert [url for url, _ in calls] == ["b"]

    def test_failing_channel_does_not_stop_the_others(self, caplog) -> None:
        calls: List[Tuple[str, Any]] = []
        manager = _manager([_channel("broken"), _channel("b")], calls, adapter_cls=FailingBroadcast)

        with caplog.at_level(logging.WARNING, logger="checkin_notify.notifications.manager"):
            manager.push()

        assert [url for url, _ in calls] == ["b"]
        assert "broadcast#0 failed: provider unreachable" in caplog.text

    def test_failing_template_is_isolated(self) -> None:
        def _boom(_data):
            raise KeyError("missing")

        calls: List[Tuple[str, Any]] = []
        broken = BroadcastChannelConfig(urls=["a"], templates=BroadcastTemplates(body=_boom))
        manager = _manager([broken, _channel("b")], calls)

        manager.push()

        assert [url for url, _ in calls] == ["b"]

    def test_push_twice_sends_twice(self) -> None:
        calls: List[Tuple[str, Any]] = []
        manager = _manager([_channel("a")], calls)
        manager.push()
        manager.push()
        assert [url for url, _ in calls] == ["a", "a"]

    def test_push_renders_current_snapshot(self) -> None:
        calls: List[Tuple[str, Any]] = []
        config = BroadcastChannelConfig(
            urls=["a"],
            templates=BroadcastTemplates(title="{{meta.executionResult}}", body="{{accounts.total}}"),
        )
        manager = _manager([config], calls)
        manager.update_account_stats(total=1)
        manager.push()
        manager.update_account_stats(total=2)
        manager.set_result(ExecutionResult.FAILED)
        manager.push()

        assert [(rendered.title, rendered.body) for _, rendered in calls] == [("success", "1"), ("failed", "2")]

    def test_templates_cannot_mutate_the_snapshot(self) -> None:
        def _mutating(data):
            data.accounts.total = 100
            return "x"

        calls: List[Tuple[str, Any]] = []
        config = BroadcastChannelConfig(urls=["a"], templates=BroadcastTemplates(body=_mutating))
        manager = _manager([config], calls)
        manager.update_account_stats(total=1)

        manager.push()

        assert manager.get_data().accounts.total == 1

    def test_push_does_not_touch_error_flag(self) -> None:
        calls: List[Tuple[str, Any]] = []
        manager = _manager([_channel("broken")], calls, adapter_cls=FailingBroadcast)
        manager.push()
        assert manager.has_error() is False

    def test_push_logs_dispatch_summary(self, caplog) -> None:
        calls: List[Tuple[str, Any]] = []
        manager = _manager([_channel("a"), _channel("b", enabled=False)], calls)

        with caplog.at_level(logging.INFO, logger="checkin_notify.notifications.manager"):
            manager.push()

        assert "Notification Dispatch" in caplog.text
        assert "broadcast#0" in caplog.text
        assert "broadcast#1" in caplog.text

    def test_channels_without_recipients_count_as_skipped(self, monkeypatch, caplog) -> None:
        def fake_post(*args, **kwargs):
            raise AssertionError("Bark request should not be sent without device keys")

        monkeypatch.setattr("checkin_notify.notifications.bark.requests.post", fake_post)
        manager = NotificationManager([BarkChannelConfig(tokens=[]), BroadcastChannelConfig(urls=[])])

        with caplog.at_level(logging.INFO, logger="checkin_notify.notifications.manager"):
            manager.push()

        assert "Sent        : (none)" in caplog.text
        assert "Skipped     : bark#0, broadcast#1" in caplog.text

    def test_default_adapters_end_to_end(self, monkeypatch, caplog) -> None:
        class FakeResponse:
            status_code = 500
            text = "upstream exploded"

            def raise_for_status(self) -> None:
                raise requests.HTTPError("500 Server Error", response=self)

        monkeypatch.setattr(
            "checkin_notify.notifications.bark.requests.post",
            lambda url, json=None, timeout=None: FakeResponse(),
        )
        apprise_cls = MagicMock(name="Apprise")
        apprise_cls.return_value.add.return_value = True
        apprise_cls.return_value.notify.return_value = True
        monkeypatch.setattr("checkin_notify.notifications.broadcast.apprise.Apprise", apprise_cls)

        manager = NotificationManager(
            [BarkChannelConfig(tokens=["k"]), BroadcastChannelConfig(urls=["json://localhost"])]
        )
        manager.update_account_stats(total=1, successful=1)

        with caplog.at_level(logging.WARNING, logger="checkin_notify.notifications.manager"):
            manager.push()

        apprise_cls.return_value.notify.assert_called_once()
        assert "upstream exploded" in caplog.text


class TestChannelRegistry:
    def test_default_adapters_cover_every_channel_type(self) -> None:
        assert set(CHANNEL_TYPES.values()) <= set(default_adapters())

    def test_unregistered_config_type_is_rejected(self) -> None:
        @dataclass
        class CarrierPigeonConfig(ChannelConfig):
            kind = "pigeon"

        with pytest.raises(TypeError, match="CarrierPigeonConfig"):
            NotificationManager([CarrierPigeonConfig()])

    def test_custom_adapter_registration(self) -> None:
        sent: List[str] = []

        @dataclass
        class ConsoleConfig(ChannelConfig):
            prefix: str = ">"

        class ConsoleAdapter(ChannelAdapter[ConsoleConfig]):
            name = "console"

            def render(self, config, data):
                return RenderedNotification(title="", body=f"{config.prefix} {data.accounts.total}")

            def send(self, config, rendered):
                sent.append(rendered.body)

        manager = NotificationManager([ConsoleConfig()], adapters={ConsoleConfig: ConsoleAdapter()})
        manager.update_account_stats(total=3)
        manager.push()

        assert sent == ["> 3"]


class TestPreview:
    def test_render_for_channel(self) -> None:
        manager = NotificationManager([BarkChannelConfig(tokens=["k"]), WebhookChannelConfig(url="https://hooks.test")])
        manager.set_result(ExecutionResult.SKIPPED)

        rendered = manager.render_for_channel("bark")

        assert rendered is not None
        assert rendered.subtitle == "Already checked in"
        assert manager.render_for_channel("webhook").body["meta"]["executionResult"] == "skipped"

    def test_render_for_missing_or_unknown_channel(self) -> None:
        manager = NotificationManager([BarkChannelConfig(tokens=["k"])])
        assert manager.render_for_channel("broadcast") is None
        assert manager.render_for_channel("statocysts") is None
        assert manager.render_for_channel("pigeon") is None

    def test_render_summary_prints_tables(self) -> None:
        console = Console(record=True, width=120)
        manager = NotificationManager()
        manager.update_account_stats(total=2, successful=1, failed=1, failed_indexes=[2])
        manager.update_game_stats(1, "Arknights", total=2, succeeded=1, failed=1)

        manager.render_summary(console)

        text = console.export_text()
        assert "Arknights" in text
        assert "#2" in text
