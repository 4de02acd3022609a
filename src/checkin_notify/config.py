from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Optional

from .message_templates import (
    BARK_SUBTITLE,
    BARK_TITLE,
    BROADCAST_TITLE,
    FULL_BODY,
    SNAPSHOT_PAYLOAD,
)
from .models import ExecutionResult
from .templating import TemplateLike
from .utils import load_yaml_file

DEFAULT_SEND_ON = frozenset({ExecutionResult.SUCCESS, ExecutionResult.FAILED})
ALL_RESULTS = frozenset(ExecutionResult)

BARK_LEVELS = frozenset({"active", "timeSensitive", "passive"})
WEBHOOK_METHODS = frozenset({"POST", "PUT"})


@dataclass
class BarkTemplates:
    title: TemplateLike = BARK_TITLE
    subtitle: TemplateLike = BARK_SUBTITLE
    body: TemplateLike = FULL_BODY


@dataclass
class BroadcastTemplates:
    title: TemplateLike = BROADCAST_TITLE
    body: TemplateLike = FULL_BODY


@dataclass
class WebhookTemplates:
    body: TemplateLike = SNAPSHOT_PAYLOAD


@dataclass
class ChannelConfig:
    kind: ClassVar[str] = "channel"

    enabled: bool = True
    send_on: Optional[frozenset[ExecutionResult]] = None

    def effective_send_on(self) -> frozenset[ExecutionResult]:
        return self.send_on if self.send_on is not None else DEFAULT_SEND_ON

    def should_send(self, result: ExecutionResult) -> bool:
        return result in self.effective_send_on()


@dataclass
class BarkChannelConfig(ChannelConfig):
    """Bark (https://github.com/Finb/Bark) push to one or more device keys."""

    kind: ClassVar[str] = "bark"

    tokens: list[str] = field(default_factory=list)
    templates: BarkTemplates = field(default_factory=BarkTemplates)
    group: Optional[str] = None
    icon: Optional[str] = None
    level: Optional[str] = None
    url: Optional[str] = None
    sound: Optional[str] = None


@dataclass
class BroadcastChannelConfig(ChannelConfig):
    """Notification URLs delivered through apprise (``tgram://``, ``mailto://`` ...)."""

    kind: ClassVar[str] = "broadcast"

    urls: list[str] = field(default_factory=list)
    templates: BroadcastTemplates = field(default_factory=BroadcastTemplates)


@dataclass
class WebhookChannelConfig(ChannelConfig):
    kind: ClassVar[str] = "webhook"

    url: str = ""
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    templates: WebhookTemplates = field(default_factory=WebhookTemplates)


CHANNEL_TYPES: dict[str, type[ChannelConfig]] = {
    "bark": BarkChannelConfig,
    "broadcast": BroadcastChannelConfig,
    "statocysts": BroadcastChannelConfig,
    "webhook": WebhookChannelConfig,
}


def bark_channel(
    tokens: Iterable[str],
    *,
    enabled: bool = True,
    send_on: Optional[Iterable[ExecutionResult | str]] = None,
    templates: Optional[BarkTemplates] = None,
    group: Optional[str] = None,
    icon: Optional[str] = None,
    level: Optional[str] = None,
    url: Optional[str] = None,
    sound: Optional[str] = None,
) -> BarkChannelConfig:
    """Build a Bark channel. Fires on every result unless ``send_on`` is given."""
    _check_bark_level(level, field_name="level")
    return BarkChannelConfig(
        enabled=enabled,
        tokens=list(tokens),
        templates=templates or BarkTemplates(),
        send_on=_parse_send_on(send_on, field_name="send_on") if send_on is not None else ALL_RESULTS,
        group=group,
        icon=icon,
        level=level,
        url=url,
        sound=sound,
    )


def broadcast_channel(
    urls: Iterable[str],
    *,
    enabled: bool = True,
    send_on: Optional[Iterable[ExecutionResult | str]] = None,
    templates: Optional[BroadcastTemplates] = None,
) -> BroadcastChannelConfig:
    """Build a URL broadcast channel. Skipped runs are silent by default."""
    return BroadcastChannelConfig(
        enabled=enabled,
        urls=list(urls),
        templates=templates or BroadcastTemplates(),
        send_on=_parse_send_on(send_on, field_name="send_on") if send_on is not None else DEFAULT_SEND_ON,
    )


def _parse_send_on(value: Any, *, field_name: str) -> frozenset[ExecutionResult]:
    if isinstance(value, (str, ExecutionResult)):
        value = [value]
    if not isinstance(value, Iterable):
        raise ValueError(f"'{field_name}' must be a list of execution results")
    results: set[ExecutionResult] = set()
    for index, entry in enumerate(value):
        try:
            results.add(ExecutionResult(entry))
        except ValueError as exc:
            allowed = ", ".join(sorted(item.value for item in ExecutionResult))
            raise ValueError(f"'{field_name}[{index}]' must be one of: {allowed}") from exc
    return frozenset(results)


def _ensure_string_list(value: Any, *, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be provided as a list of strings")
    result: list[str] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, str):
            raise ValueError(f"'{field_name}[{index}]' must be a string")
        cleaned = entry.strip()
        if cleaned:
            result.append(cleaned)
    return result


def _check_bark_level(level: Optional[str], *, field_name: str) -> None:
    if level is not None and level not in BARK_LEVELS:
        raise ValueError(f"'{field_name}' must be one of: {', '.join(sorted(BARK_LEVELS))}")


def _optional_string(data: dict[str, Any], key: str, *, field_name: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}.{key}' must be a string")
    return value.strip() or None


def _template_overrides(data: dict[str, Any], allowed: Iterable[str], *, field_name: str) -> dict[str, str]:
    raw = data.get("templates") or {}
    if not isinstance(raw, dict):
        raise ValueError(f"'{field_name}.templates' must be a mapping")
    overrides: dict[str, str] = {}
    allowed_keys = set(allowed)
    for key, value in raw.items():
        if key not in allowed_keys:
            raise ValueError(
                f"'{field_name}.templates.{key}' is not supported; expected one of: {', '.join(sorted(allowed_keys))}"
            )
        if not isinstance(value, str):
            raise ValueError(f"'{field_name}.templates.{key}' must be a string")
        overrides[key] = value
    return overrides


def _build_bark(data: dict[str, Any], field_name: str) -> BarkChannelConfig:
    level = _optional_string(data, "level", field_name=field_name)
    _check_bark_level(level, field_name=f"{field_name}.level")
    return BarkChannelConfig(
        tokens=_ensure_string_list(data.get("tokens"), field_name=f"{field_name}.tokens"),
        templates=BarkTemplates(**_template_overrides(data, ("title", "subtitle", "body"), field_name=field_name)),
        group=_optional_string(data, "group", field_name=field_name),
        icon=_optional_string(data, "icon", field_name=field_name),
        level=level,
        url=_optional_string(data, "url", field_name=field_name),
        sound=_optional_string(data, "sound", field_name=field_name),
    )


def _build_broadcast(data: dict[str, Any], field_name: str) -> BroadcastChannelConfig:
    return BroadcastChannelConfig(
        urls=_ensure_string_list(data.get("urls"), field_name=f"{field_name}.urls"),
        templates=BroadcastTemplates(**_template_overrides(data, ("title", "body"), field_name=field_name)),
    )


def _build_webhook(data: dict[str, Any], field_name: str) -> WebhookChannelConfig:
    url = _optional_string(data, "url", field_name=field_name)
    if not url:
        raise ValueError(f"'{field_name}.url' is required for webhook channels")
    method = str(data.get("method", "POST")).upper()
    if method not in WEBHOOK_METHODS:
        raise ValueError(f"'{field_name}.method' must be one of: {', '.join(sorted(WEBHOOK_METHODS))}")
    headers = data.get("headers") or {}
    if not isinstance(headers, dict):
        raise ValueError(f"'{field_name}.headers' must be a mapping")
    return WebhookChannelConfig(
        url=url,
        method=method,
        headers={str(key): str(value) for key, value in headers.items()},
        templates=WebhookTemplates(**_template_overrides(data, ("body",), field_name=field_name)),
    )


_BUILDERS = {
    BarkChannelConfig: _build_bark,
    BroadcastChannelConfig: _build_broadcast,
    WebhookChannelConfig: _build_webhook,
}

_FACTORY_SEND_ON = {
    BarkChannelConfig: ALL_RESULTS,
    BroadcastChannelConfig: DEFAULT_SEND_ON,
}


def build_channel_config(data: dict[str, Any], *, field_name: str = "channel") -> ChannelConfig:
    if not isinstance(data, dict):
        raise ValueError(f"'{field_name}' must be provided as a mapping")
    channel_type = str(data.get("type", "")).strip().lower()
    config_cls = CHANNEL_TYPES.get(channel_type)
    if config_cls is None:
        raise ValueError(
            f"'{field_name}.type' must be one of: {', '.join(sorted(CHANNEL_TYPES))} (got '{channel_type or '<missing>'}')"
        )

    config = _BUILDERS[config_cls](data, field_name)
    config.enabled = bool(data.get("enabled", True))
    if data.get("send_on") is not None:
        config.send_on = _parse_send_on(data["send_on"], field_name=f"{field_name}.send_on")
    else:
        config.send_on = _FACTORY_SEND_ON.get(config_cls)
    return config


def load_channels(path: Path) -> list[ChannelConfig]:
    """Load channel configurations from the ``notifications.channels`` list of a YAML file."""
    data = load_yaml_file(path)
    notifications = data.get("notifications") or {}
    if not isinstance(notifications, dict):
        raise ValueError("'notifications' must be provided as a mapping")
    entries = notifications.get("channels") or []
    if not isinstance(entries, list):
        raise ValueError("'notifications.channels' must be provided as a list")
    return [
        build_channel_config(entry, field_name=f"notifications.channels[{index}]")
        for index, entry in enumerate(entries)
    ]
