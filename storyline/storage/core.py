"""Storage initialization, path helpers, and key validation."""

import re
from pathlib import Path

_data_dir: Path | None = None
_presets_dir: Path | None = None
_opening_cache: str | None = None

_SESSION_KEY_RE = re.compile(r"[A-Za-z0-9_-]{1,128}")


def init_storage(data_dir: Path, presets_dir: Path | None = None) -> None:
    global _data_dir, _presets_dir, _opening_cache

    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    sessions_dir().mkdir(exist_ok=True)
    if presets_dir is None:
        # Default: repo_root/presets
        presets_dir = Path(__file__).parent.parent.parent / "presets"
    _presets_dir = presets_dir
    _opening_cache = None


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def presets_dir() -> Path:
    assert _presets_dir is not None, "Call init_storage() before using storage"
    return _presets_dir


def sessions_dir() -> Path:
    return data_dir() / "sessions"


def validate_key(key: str, what: str = "user session") -> str:
    """Reject keys that are not safe to use as a path component."""
    if not key or not _SESSION_KEY_RE.fullmatch(key):
        raise ValueError(f"Invalid {what}: {key!r}")
    return key


def get_opening_fragment() -> str:
    """Read presets/opening.xml once and serve it from memory afterwards."""
    global _opening_cache
    if _opening_cache is None:
        _opening_cache = (presets_dir() / "opening.xml").read_text(encoding="utf-8")
    return _opening_cache
