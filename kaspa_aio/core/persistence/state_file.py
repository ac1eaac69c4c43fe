"""
State file persistence — read/write for the installation-state JSON.

The state lives at .kaspa-aio/installation-state.json.  Reads never
fail: a missing or unreadable document yields a fresh state.  Writes
replace the whole document atomically (write to temp file, then
rename) and create the directory as needed.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import ValidationError

from kaspa_aio.core.models.state import InstallationState

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".kaspa-aio"
DEFAULT_STATE_FILE = "installation-state.json"


def default_state_path(root: Path) -> Path:
    """Get the default state file path for an installation."""
    return root / DEFAULT_STATE_DIR / DEFAULT_STATE_FILE


def load_state(path: Path) -> InstallationState:
    """Load installation state from a JSON file.

    Returns:
        InstallationState.  Missing or corrupt files give a fresh state.
    """
    if not path.is_file():
        logger.info("No state file at %s — starting fresh", path)
        return InstallationState()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Corrupt state file %s: %s — starting fresh", path, e)
        return InstallationState()

    if not isinstance(data, dict):
        logger.warning("State file %s is not a JSON object — starting fresh", path)
        return InstallationState()

    try:
        state = InstallationState.model_validate(data)
    except ValidationError as e:
        logger.warning("Cannot load state from %s: %s — starting fresh", path, e)
        return InstallationState()

    logger.debug("Loaded state from %s (%d profiles)", path, len(state.selected))
    return state


def save_state(state: InstallationState, path: Path) -> None:
    """Save installation state (atomic full-document write).

    Args:
        state: The state to save; its last_modified is refreshed.
        path: Target path for the state file.
    """
    state.touch()
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(state.to_dict(), indent=2, ensure_ascii=False) + "\n"

    try:
        _fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".state_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
            logger.debug("State saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except Exception as e:
        logger.error("Failed to save state to %s: %s", path, e)
        raise
