"""
Installation context — which Kaspa All-in-One checkout we operate on.

The root is set ONCE at startup by the entry point:

    - CLI:    main.py   → context.set_installation_root(root)
    - Tests:  fixtures  → context.set_installation_root(tmp_path)

Module-level singleton (not a class).  ``get_installation_root()``
returns None when unset; services that need a root take it as an
explicit argument and fall back to this value.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


_installation_root: Optional[Path] = None


def set_installation_root(root: Path | None) -> None:
    """Register the installation root for the current process."""
    global _installation_root
    _installation_root = root


def get_installation_root() -> Optional[Path]:
    """Return the current installation root, or None if not yet set."""
    return _installation_root
