from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from requests import Response


def expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env(val) for key, val in value.items()}
    return value


def load_yaml_file(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return expand_env(data)


def trim(value: str, limit: int) -> str:
    """Trim a string to a maximum length, appending '...' if truncated."""
    stripped = value.strip()
    if len(stripped) <= limit:
        return stripped
    if limit <= 3:
        return stripped[:limit]
    return stripped[: limit - 3] + "..."


def excerpt_response(response: Response) -> str:
    """Extract a short excerpt from an HTTP response for logging purposes."""
    try:
        text = response.text
    except Exception:  # pragma: no cover
        return "<no response body>"
    return trim(text or "<empty>", 200)

