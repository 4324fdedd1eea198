"""Configuration management for flashcli."""

import json
import logging
import shutil
from dataclasses import dataclass, asdict, fields

from .card_filters import SessionConfig, SortBy
from .paths import CONFIG_FILE, ensure_data_dir, atomic_json_write

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration: defaults for new study sessions."""

    max_cards: int | None = 20
    max_new_cards: int | None = 5
    due_only: bool = True
    shuffled: bool = False

    def __post_init__(self) -> None:
        for key in ("max_cards", "max_new_cards"):
            value = getattr(self, key)
            if value is not None and value < 0:
                raise ValueError(f"'{key}' must not be negative")

    def session_config(self) -> SessionConfig:
        """Session settings, ordered by due date unless shuffled."""
        return SessionConfig(
            max_cards=self.max_cards,
            max_new_cards=self.max_new_cards,
            due_only=self.due_only,
            shuffled=self.shuffled,
            sort_by=SortBy.RANDOM if self.shuffled else SortBy.DUE_DATE,
        )


CONFIG_KEYS = tuple(f.name for f in fields(Config))


def load_config() -> Config:
    """Load config from disk, creating defaults if needed."""
    ensure_data_dir()

    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE) as f:
                data = json.load(f)
            return Config(
                **{k: v for k, v in data.items() if k in Config.__dataclass_fields__}
            )
        except (json.JSONDecodeError, TypeError, AttributeError, ValueError):
            # Back up corrupted config before overwriting with defaults
            backup_path = CONFIG_FILE.with_suffix(".json.bak")
            try:
                shutil.copy2(CONFIG_FILE, backup_path)
            except OSError:
                pass
            logger.warning("Corrupted config backed up to %s; using defaults", backup_path)

    # Return defaults and save them
    config = Config()
    save_config(config)
    return config


def save_config(config: Config) -> None:
    """Save config to disk."""
    ensure_data_dir()
    atomic_json_write(CONFIG_FILE, asdict(config))


def parse_config_value(key: str, value: str):
    """Convert a command-line string to the type of config field ``key``.

    Limits accept "none"/"all"/"0" for no limit.
    """
    if key not in CONFIG_KEYS:
        raise KeyError(f"Unknown config key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")

    text = value.strip().lower()
    if key in ("due_only", "shuffled"):
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Expected true/false for '{key}', got '{value}'")

    if text in ("none", "all", "0", ""):
        return None
    number = int(text)
    if number < 0:
        raise ValueError(f"'{key}' must not be negative")
    return number


def set_config_value(config: Config, key: str, value: str) -> Config:
    """Set a config field from a string and save config."""
    setattr(config, key, parse_config_value(key, value))
    save_config(config)
    return config


def format_config_display(config: Config) -> str:
    """Format config for display."""
    lines = ["Study session defaults", "=" * 40]
    for key in CONFIG_KEYS:
        value = getattr(config, key)
        if value is None:
            value = "no limit"
        lines.append(f"  {key:<15} {value}")
    lines.append("=" * 40)
    return "\n".join(lines)
