"""Global app configuration (parser tuning, streaming, display, audio toggles)."""

import json
from pathlib import Path
from typing import Any

from .core import data_dir

_CONFIG_DEFAULTS: dict[str, Any] = {
    "fallback_tail_limit": 50,
    "stream_chunk_size": 0,  # 0 sends each fragment in one piece
    "typewriter_delay_ms": 30,
    "audio": {
        "sound_enabled": True,
        "music_enabled": True,
        "music_volume": 0.5,
    },
}


def _config_path() -> Path:
    return data_dir() / "config.json"


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    path = _config_path()
    if path.is_file():
        stored = json.loads(path.read_text())
        for key in ("fallback_tail_limit", "stream_chunk_size", "typewriter_delay_ms"):
            if key in stored:
                config[key] = stored[key]
        if isinstance(stored.get("audio"), dict):
            config["audio"].update(stored["audio"])
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config.

    Unknown keys are ignored; audio is merged key-by-key.
    """
    config = get_config()
    for key in ("fallback_tail_limit", "stream_chunk_size", "typewriter_delay_ms"):
        if key in fields:
            config[key] = fields[key]
    if isinstance(fields.get("audio"), dict):
        for name, value in fields["audio"].items():
            if name in config["audio"]:
                config["audio"][name] = value
    _config_path().write_text(json.dumps(config, indent=2))
    return config
