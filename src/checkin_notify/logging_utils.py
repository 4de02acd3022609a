from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableSequence, Sequence
from typing import Union

DEFAULT_LABEL_WIDTH = 12
DEFAULT_INDENT = "    "
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s\n%(message)s\n"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

FieldMapping = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def configure_logging(*, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


class LogBlockBuilder:
    """Builds an indented, titled block of ``label: value`` lines for log output."""

    def __init__(self, title: str, *, label_width: int = DEFAULT_LABEL_WIDTH, indent: str = DEFAULT_INDENT) -> None:
        self.label_width = label_width
        self.indent = indent
        self.lines: MutableSequence[str] = [title, "-" * len(title)]

    def add_fields(self, fields: FieldMapping) -> None:
        items = list(fields.items()) if isinstance(fields, Mapping) else list(fields)
        for key, value in items:
            self.lines.append(f"{self.indent}{str(key):<{self.label_width}}: {_stringify(value) or '(none)'}")

    def add_section(self, heading: str, items: Iterable[str]) -> None:
        self.lines.append(f"{heading}:")
        materialized = [item for item in items if item]
        if not materialized:
            self.lines.append(f"{self.indent}(none)")
            return
        for item in materialized:
            self.lines.append(f"{self.indent}- {item}")

    def render(self) -> str:
        return "\n".join(self.lines).rstrip()
