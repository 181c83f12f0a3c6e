"""Common path utilities for genstream."""

from __future__ import annotations

import os
from pathlib import Path


def get_genstream_home() -> Path:
    """Return the base genstream directory, honoring GENSTREAM_HOME if set."""

    env_path = os.environ.get("GENSTREAM_HOME")
    return Path(env_path).expanduser() if env_path else Path.home() / ".genstream"


__all__ = ["get_genstream_home"]
