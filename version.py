"""Version metadata and the developer-mode switch for the show console."""
from __future__ import annotations

import os
import re
from typing import Mapping, Optional

__all__ = ["__version__", "DEV_MODE_ENV_VAR", "dev_mode_override", "is_dev_build", "version_banner"]

__version__ = "1.2.0"
DEV_MODE_ENV_VAR = "SHOW_CONSOLE_DEV_MODE"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})
# "1.3.0-dev", "1.3.0.dev2", "2.0+dev" or a bare "dev".
_DEV_MARKER = re.compile(r"(?:^|[.\-+])dev\d*(?:$|[.\-+])")


def dev_mode_override(environ: Optional[Mapping[str, str]] = None) -> Optional[bool]:
    """Explicit on/off from the environment, or None when unset or unrecognised."""

    env = os.environ if environ is None else environ
    raw = env.get(DEV_MODE_ENV_VAR)
    if raw is None:
        return None
    token = raw.strip().lower()
    if token in _TRUTHY:
        return True
    if token in _FALSY:
        return False
    return None


def is_dev_build(version: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> bool:
    override = dev_mode_override(environ)
    if override is not None:
        return override
    identifier = (version if version is not None else __version__ or "").strip().lower()
    return bool(_DEV_MARKER.search(identifier))


def version_banner() -> str:
    return f"show console {__version__}{' (dev)' if is_dev_build() else ''}"
