"""Suite defaults from the repository's ``.env.defaults`` file.

Environment variables always win; the file only fills the gaps so a fresh
checkout runs the offline suite without exporting anything. Point
``MEALKIT_ENV_DEFAULTS`` at another file to swap the whole set (for example a
``live.env`` with real hosts).

Format: ``KEY=value`` per line, ``#`` comments, optional ``export`` prefix and
optional matching quotes around the value. An empty value counts as unset.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict

REPO_ROOT = Path(__file__).resolve().parents[1]
ENV_DEFAULTS_PATH = REPO_ROOT / ".env.defaults"
ENV_DEFAULTS_OVERRIDE = "MEALKIT_ENV_DEFAULTS"


def env_defaults_path() -> Path:
    override = os.getenv(ENV_DEFAULTS_OVERRIDE)
    return Path(override) if override else ENV_DEFAULTS_PATH


def parse_env_defaults(text: str) -> Dict[str, str]:
    defaults: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        if value:
            defaults[key] = value
    return defaults


@lru_cache(maxsize=4)
def load_env_defaults(path: Path) -> Dict[str, str]:
    """Parse ``path`` once; a missing file means no defaults."""
    if not path.exists():
        return {}
    return parse_env_defaults(path.read_text(encoding="utf-8"))


def get_env_default(key: str) -> str | None:
    return load_env_defaults(env_defaults_path()).get(key)
