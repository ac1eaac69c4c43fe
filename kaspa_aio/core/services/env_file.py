"""
.env file helpers — parse, strip keys, write atomically.

One line parser (``parse_env_line``) serves both reading the live
configuration and removing a profile's keys, so "what counts as a key"
is identical in both directions.

Handles:
    - KEY=value
    - KEY="value" / KEY='value'
    - export KEY=value
    - Comments (#) and blank lines (ignored when reading,
      preserved verbatim when stripping)
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def parse_env_line(line: str) -> tuple[str, str] | None:
    """Parse one line into ``(key, value)``, or None for non-key lines."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    if line.startswith("export "):
        line = line[7:].strip()

    if "=" not in line:
        return None

    key, _, value = line.partition("=")
    key = key.strip()
    value = value.strip()
    if not key:
        return None

    # Remove surrounding quotes
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]

    return key, value


def parse_env_text(content: str) -> dict[str, str]:
    """Parse .env content into a key/value dict (last assignment wins)."""
    result: dict[str, str] = {}
    for line in content.splitlines():
        parsed = parse_env_line(line)
        if parsed is not None:
            key, value = parsed
            result[key] = value
    return result


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file; a missing file is an empty configuration."""
    if not path.is_file():
        logger.debug("No .env at %s — empty configuration", path)
        return {}
    return parse_env_text(path.read_text(encoding="utf-8"))


def key_matches(key: str, remove_key: str) -> bool:
    """Exact match, or *key* is a ``remove_key + "_"`` extension."""
    return key == remove_key or key.startswith(remove_key + "_")


def strip_env_keys(content: str, remove_keys: Iterable[str]) -> tuple[str, list[str]]:
    """Drop every assignment whose key matches one of *remove_keys*.

    Comment and non-key lines are kept verbatim.

    Returns:
        (new_content, removed_keys) with removed keys in file order.
    """
    remove = list(remove_keys)
    kept: list[str] = []
    removed: list[str] = []

    for line in content.splitlines():
        parsed = parse_env_line(line)
        if parsed is not None and any(key_matches(parsed[0], k) for k in remove):
            removed.append(parsed[0])
            continue
        kept.append(line)

    new_content = "\n".join(kept)
    if kept:
        new_content += "\n"
    return new_content, removed


def format_env_value(value: Any) -> str:
    """Render a config value for a .env line."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    text = str(value)
    if " " in text or "#" in text:
        quote = "'" if '"' in text else '"'
        return f"{quote}{text}{quote}"
    return text


def atomic_write_text(path: Path, content: str) -> None:
    """Write *content* via a temp file in the same directory, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
        logger.debug("Wrote %s (%d bytes)", path, len(content))
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def write_env_file(path: Path, content: str) -> None:
    """Write .env content atomically, newline-terminated."""
    if content and not content.endswith("\n"):
        content += "\n"
    atomic_write_text(path, content)
