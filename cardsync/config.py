# Card sync: configuration
# Values come from cardsync.yaml, then environment variables override them.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Optional

from .errors import ConfigError
from .session import DEFAULT_SESSION_FILE
from .client import TRELLO_API_URL

CONFIG_FILE = "cardsync.yaml"

ENV_LIST_IDS = {
    "TRELLO_LIST_TODO": "todo",
    "TRELLO_LIST_IN_PROGRESS": "inProgress",
    "TRELLO_LIST_REVIEW": "review",
    "TRELLO_LIST_DONE": "done",
}


@dataclass
class Config:
    """Runtime configuration for card sync."""

    # Credentials
    api_key: str = ""
    token: str = ""
    board_id: str = ""

    # Explicit list ids by role ("todo", "inProgress", "review", "done")
    list_ids: Dict[str, str] = field(default_factory=dict)

    # Session file (one per working directory)
    session_path: str = DEFAULT_SESSION_FILE

    # Behavior
    call_delay: float = 0.2       # seconds between remote mutations
    request_timeout: float = 15.0
    base_url: str = TRELLO_API_URL
    log_level: str = "INFO"

    def apply_env(self, env=None):
        """Override fields from environment variables."""
        env = os.environ if env is None else env
        self.api_key = env.get("TRELLO_API_KEY", self.api_key)
        self.token = env.get("TRELLO_TOKEN", self.token)
        self.board_id = env.get("TRELLO_BOARD_ID", self.board_id)
        for var, role in ENV_LIST_IDS.items():
            if env.get(var):
                self.list_ids[role] = env[var]
        self.session_path = env.get("CARDSYNC_SESSION", self.session_path)
        self.log_level = env.get("LOG_LEVEL", self.log_level).upper()
        if env.get("CARDSYNC_CALL_DELAY"):
            try:
                self.call_delay = float(env["CARDSYNC_CALL_DELAY"])
            except ValueError:
                raise ConfigError(
                    f"CARDSYNC_CALL_DELAY must be a number, got: {env['CARDSYNC_CALL_DELAY']!r}"
                )

    def validate(self):
        missing = [name for name in ("api_key", "token", "board_id") if not getattr(self, name)]
        if missing:
            raise ConfigError(
                f"Missing Trello credentials: {', '.join(missing)}.\n"
                f"Set TRELLO_API_KEY, TRELLO_TOKEN and TRELLO_BOARD_ID, "
                f"or put them in {CONFIG_FILE}."
            )

    @classmethod
    def load(cls, path: Optional[str] = None, env=None) -> "Config":
        """Load config from YAML (if present), then apply the environment."""
        cfg_path = Path(path) if path else Path.cwd() / CONFIG_FILE
        if path and not cfg_path.exists():
            raise ConfigError(f"Config file not found: {cfg_path}")

        cfg = cls()
        if cfg_path.exists():
            try:
                with open(cfg_path) as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Cannot read {cfg_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping")
            cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
            cfg._coerce(cfg_path)

        cfg.apply_env(env)
        return cfg

    def _coerce(self, source):
        """Normalize types of values read from YAML."""
        list_ids = self.list_ids or {}
        if not isinstance(list_ids, dict):
            raise ConfigError(f"{source}: list_ids must be a mapping of role to list id")
        self.list_ids = {str(k): str(v) for k, v in list_ids.items() if v}

        for name in ("call_delay", "request_timeout"):
            value = getattr(self, name)
            try:
                setattr(self, name, float(value))
            except (TypeError, ValueError):
                raise ConfigError(f"{source}: {name} must be a number, got: {value!r}")

        # Empty YAML keys load as None; those fall back to the defaults
        defaults = type(self)()
        for name in ("api_key", "token", "board_id", "session_path", "base_url", "log_level"):
            value = getattr(self, name)
            setattr(self, name, getattr(defaults, name) if value is None else str(value))
