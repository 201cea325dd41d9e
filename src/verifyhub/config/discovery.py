"""Config file discovery.

Walk-up finder locates verifyhub.toml from the working directory toward
the filesystem root. ``VERIFYHUB_CONFIG`` and ``--config`` override it.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "verifyhub.toml"
CONFIG_ENV_VAR = "VERIFYHUB_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for verifyhub.toml.

    Checks VERIFYHUB_CONFIG first; an env path that is not a file means
    no config rather than falling back to discovery.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent
