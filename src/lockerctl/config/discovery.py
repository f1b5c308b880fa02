"""Locate the ``lockerctl.toml`` of a locker site.

A site is the directory that holds ``lockerctl.toml`` and the
``.lockerctl/`` state directory. Staff terminals usually run commands
from somewhere below it, so the file is searched upwards from the working
directory. Kiosks and service units point ``LOCKERCTL_CONFIG`` at either
the file or the site directory instead; an explicit ``--config`` wins over
both and is handled by the caller.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "lockerctl.toml"
CONFIG_ENV_VAR = "LOCKERCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Config file for the site containing *start* (default: cwd), or None.

    A set ``LOCKERCTL_CONFIG`` is authoritative: if it names neither a
    file nor a site directory, no walk-up happens.
    """
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return _from_env(Path(env_value))

    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _from_env(path: Path) -> Path | None:
    if path.is_dir():
        path = path / CONFIG_FILENAME
    return path if path.is_file() else None
