# Drag & drop board: configuration
# Override endpoints and thresholds via board.yaml or environment variables.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ConfigError
from .schema import DEFAULT_COLUMNS

CONFIG_PATH = Path("board.yaml")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class BoardConfig:
    """Runtime configuration for the board client and the reference server."""

    # Status-update RPC
    api_base_url: str = "http://localhost:3000"
    status_endpoint: str = "/api/tasks/update_status"
    request_timeout: float = 5.0

    # Board layout
    columns: List[str] = field(default_factory=lambda: list(DEFAULT_COLUMNS))

    # Behavior: touch drags start after this much movement on either axis
    touch_threshold_px: float = 10.0

    # Move journal (None = disabled)
    journal_path: Optional[str] = None

    # Reference server storage
    db_path: str = "~/.local/share/dragdrop/board.db"

    log_level: str = "INFO"

    def apply_env(self):
        """Environment overrides: DRAGDROP_API_URL, DRAGDROP_DB."""
        env_url = os.environ.get("DRAGDROP_API_URL")
        if env_url:
            self.api_base_url = env_url
        env_db = os.environ.get("DRAGDROP_DB")
        if env_db:
            self.db_path = env_db

    def resolve_paths(self):
        """Expand ~ in file paths."""
        self.db_path = str(Path(self.db_path).expanduser())
        if self.journal_path:
            self.journal_path = str(Path(self.journal_path).expanduser())

    def validate(self):
        """Check types and ranges; numeric fields are coerced to float. Raises ConfigError."""
        for name in ("api_base_url", "status_endpoint", "db_path"):
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{name} must be a string, got: {getattr(self, name)!r}")
        if self.journal_path is not None and not isinstance(self.journal_path, str):
            raise ConfigError(f"journal_path must be a string, got: {self.journal_path!r}")

        if not isinstance(self.columns, list) or not all(isinstance(c, str) and c for c in self.columns):
            raise ConfigError(f"columns must be a list of column keys, got: {self.columns!r}")
        if not self.columns:
            raise ConfigError("At least one column is required")
        if len(set(self.columns)) != len(self.columns):
            raise ConfigError(f"Duplicate column keys: {self.columns}")

        self.touch_threshold_px = self._as_float("touch_threshold_px")
        self.request_timeout = self._as_float("request_timeout")
        if self.touch_threshold_px < 0:
            raise ConfigError(f"touch_threshold_px must be >= 0, got: {self.touch_threshold_px}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be > 0, got: {self.request_timeout}")

        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(
                f"Invalid log_level: '{self.log_level}'. Allowed: {', '.join(LOG_LEVELS)}"
            )

    def _as_float(self, name: str) -> float:
        value = getattr(self, name)
        # bool is an int subclass; float(True) would pass
        if isinstance(value, bool):
            raise ConfigError(f"{name} must be a number, got: {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number, got: {value!r}")

    @classmethod
    def load(cls, path: Optional[str] = None) -> "BoardConfig":
        """Load config from a YAML file, falling back to defaults when it is absent."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Cannot parse {cfg_path}: {e}")
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping, got {type(data).__name__}")
            cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        elif path:
            raise ConfigError(f"Config file not found: {cfg_path}")
        else:
            cfg = cls()
        cfg.apply_env()
        cfg.validate()
        cfg.resolve_paths()
        return cfg
