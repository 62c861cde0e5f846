"""Locating and reading ``writeguard.toml``.

The config file is found the way git finds ``.git/``: walk up from the
starting directory until a ``writeguard.toml`` appears. ``WRITEGUARD_CONFIG``
short-circuits the walk; ``--config`` bypasses discovery entirely.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from writeguard.config.models import WriteguardConfig

CONFIG_FILENAME = "writeguard.toml"
CONFIG_ENV_VAR = "WRITEGUARD_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    A ``WRITEGUARD_CONFIG`` pointing at a missing file yields None rather
    than falling back to the walk.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse and check *path*, returning only the keys the file sets.

    Unknown sections or keys are rejected so a typo such as ``[databse]``
    cannot silently fall back to defaults.

    Raises:
        click.ClickException: On malformed TOML or an invalid configuration.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
    try:
        config = WriteguardConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid configuration in {path}: {exc}"
        raise click.ClickException(msg) from exc
    return config.model_dump(exclude_unset=True)
