"""Template rendering against a run snapshot.

Two template shapes are supported behind the same ``render(data)`` interface:

- :class:`StringTemplate` substitutes ``{{dotted.path}}`` placeholders with values
  looked up in the snapshot. Unknown paths render as an empty string.
- :class:`FunctionTemplate` calls a function with the snapshot and returns
  whatever it produces (text for message channels, any JSON value for payload
  channels).

Raw strings and callables are accepted anywhere a template is expected and are
wrapped with :func:`as_template`.
"""

from __future__ import annotations

import dataclasses
import json
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, Union, runtime_checkable

from .models import NotificationData

PLACEHOLDER_PATTERN = re.compile(r"\{\{(.+?)\}\}")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_MISSING = object()


@runtime_checkable
class Template(Protocol):
    def render(self, data: NotificationData) -> Any: ...


TemplateLike = Union[str, Callable[[NotificationData], Any], Template]


def _camel_to_snake(value: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", value).lower()


def _lookup(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment, _MISSING)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if not segment.isdigit():
            return _MISSING
        index = int(segment)
        return current[index] if index < len(current) else _MISSING
    if dataclasses.is_dataclass(current) and not isinstance(current, type):
        names = {item.name for item in dataclasses.fields(current)}
        for candidate in (segment, _camel_to_snake(segment)):
            if candidate in names:
                return getattr(current, candidate)
    return _MISSING


def resolve_path(data: Any, path: str) -> Any:
    """Walk ``path`` (dot separated) through ``data``.

    Both the camelCase keys of the serialized snapshot (``accounts.failedIndexes``)
    and the attribute names (``accounts.failed_indexes``) are accepted. Returns
    ``None`` when any segment is missing.
    """
    current = data
    for segment in path.split("."):
        segment = segment.strip()
        if not segment:
            return None
        current = _lookup(current, segment)
        if current is _MISSING:
            return None
    return current


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if dataclasses.is_dataclass(value) and hasattr(value, "to_dict"):
        return json.dumps(value.to_dict(), ensure_ascii=False)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, default=str)
    if isinstance(value, Sequence):
        return ",".join(_stringify(item) for item in value)
    return str(value)


@dataclasses.dataclass(frozen=True)
class StringTemplate:
    source: str

    def render(self, data: NotificationData) -> str:
        def _substitute(match: re.Match[str]) -> str:
            return _stringify(resolve_path(data, match.group(1).strip()))

        return PLACEHOLDER_PATTERN.sub(_substitute, self.source)


@dataclasses.dataclass(frozen=True)
class FunctionTemplate:
    func: Callable[[NotificationData], Any]

    def render(self, data: NotificationData) -> Any:
        return self.func(data)


def as_template(template: TemplateLike) -> Template:
    if isinstance(template, str):
        return StringTemplate(template)
    if isinstance(template, (StringTemplate, FunctionTemplate)):
        return template
    if callable(template) and not hasattr(template, "render"):
        return FunctionTemplate(template)
    if isinstance(template, Template):
        return template
    raise TypeError(f"Unsupported template type: {type(template).__name__}")


def render_template(template: TemplateLike, data: NotificationData) -> Any:
    return as_template(template).render(data)
