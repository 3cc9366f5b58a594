"""Scheduler settings.

Settings live in a small JSON file next to the vault's other plugin data:

    {
      "sourceFolder": "Tasks",
      "targetSection": "## Tasks",
      "carryOverSection": "## Tasks",
      "enableCarryOver": true
    }

Configuration via environment variables:
- OBSIDIAN_VAULT: vault root (default ~/Obsidian)
- TASK_SCHEDULER_CONFIG: settings file (default <vault>/.obsidian/plugins/task-scheduler/data.json)
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

from .store import atomic_write

logger = logging.getLogger(__name__)

PLUGIN_DATA = Path(".obsidian") / "plugins" / "task-scheduler" / "data.json"


@dataclass(frozen=True)
class Settings:
    source_folder: str = ""
    target_section: str = "## Tasks"
    carry_over_section: str = "## Tasks"
    enable_carry_over: bool = True
    daily_folder: str = ""
    recurrence_folder: str = ""

    @property
    def recurrence_sources(self) -> str:
        return self.recurrence_folder or self.source_folder


# Settings attribute -> key in the JSON file
KEYS = {
    "source_folder": "sourceFolder",
    "target_section": "targetSection",
    "carry_over_section": "carryOverSection",
    "enable_carry_over": "enableCarryOver",
    "daily_folder": "dailyFolder",
    "recurrence_folder": "recurrenceFolder",
}

_TYPES = {f.name: type(f.default) for f in fields(Settings)}


def vault_root(override: str | None = None) -> Path:
    if override:
        return Path(override).expanduser()
    return Path(os.environ.get("OBSIDIAN_VAULT", "~/Obsidian")).expanduser()


def config_path(vault: Path, override: str | None = None) -> Path:
    if override:
        return Path(override).expanduser()
    from_env = os.environ.get("TASK_SCHEDULER_CONFIG", "").strip()
    if from_env:
        return Path(from_env).expanduser()
    return vault / PLUGIN_DATA


def _read_raw(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning(f"Invalid JSON in {path}, using default settings")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Settings file {path} does not hold an object, using defaults")
        return {}
    return data


def from_dict(data: dict) -> Settings:
    """Build Settings from JSON data; absent or mistyped keys use defaults."""
    values = {}
    for attr, key in KEYS.items():
        if key not in data:
            continue
        value = data[key]
        if not isinstance(value, _TYPES[attr]):
            logger.warning(f"Ignoring {key}={value!r}: expected {_TYPES[attr].__name__}")
            continue
        values[attr] = value
    return Settings(**values)


def to_dict(settings: Settings) -> dict:
    return {KEYS[attr]: value for attr, value in asdict(settings).items()}


def load_config(path: Path) -> Settings:
    return from_dict(_read_raw(path))


def save_config(path: Path, settings: Settings) -> None:
    """Persist settings, keeping keys this tool does not know about."""
    data = _read_raw(path)
    data.update(to_dict(settings))
    atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def parse_value(key: str, raw: str):
    """Convert a command-line value for *key* (JSON name or attribute name)."""
    attr = attribute_for(key)
    if _TYPES[attr] is bool:
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        raise ValueError(f"Expected true/false for {key}, got {raw!r}")
    return raw


def attribute_for(key: str) -> str:
    if key in KEYS:
        return key
    for attr, json_key in KEYS.items():
        if json_key == key:
            return attr
    raise KeyError(key)


def update_config(path: Path, key: str, raw_value: str) -> Settings:
    """Change one setting and persist it right away."""
    attr = attribute_for(key)
    settings = replace(load_config(path), **{attr: parse_value(key, raw_value)})
    save_config(path, settings)
    return settings
