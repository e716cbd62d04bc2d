from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


DISCONNECT_REMOVE = "remove"
DISCONNECT_KEEP = "keep"
DISCONNECT_POLICIES = (DISCONNECT_REMOVE, DISCONNECT_KEEP)


def _as_bool(value: Any) -> bool:
    """Interpret common truthy/falsey values into a bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"1", "true", "yes", "y", "on"}:
            return True
        if v in {"0", "false", "no", "n", "off"}:
            return False
        return True
    return bool(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in {"", "none", "off"}:
        return None
    return float(value)


@dataclass
class SessionConfig:
    """Rules and policy knobs for a dungeon session.

    Table-level policies are exposed here rather than hard-coded:
      - enforce_capacity: reject joins once max_players is reached.
      - disconnect_policy: "remove" drops a leaving player from the roster,
        "keep" leaves them in place with is_connected=False.
      - turn_timeout_seconds: idle turns may be force-ended by the host.
      - sticky_fog: explored tiles stay visible after players move away.
      - advance_round_on_wrap: bump the round counter each full rotation.

    Values can be overridden from a YAML file and from DELVE_* environment
    variables (defaults < file < env).
    """

    board_size: int = 20
    vision_radius: int = 3
    max_players: int = 4
    enforce_capacity: bool = True
    disconnect_policy: str = DISCONNECT_REMOVE
    turn_timeout_seconds: Optional[float] = None
    sticky_fog: bool = False
    advance_round_on_wrap: bool = True
    chat_history_limit: int = 200

    def validate(self) -> None:
        """Raise ValueError for settings the engine cannot run with."""
        if self.board_size < 4:
            raise ValueError("board_size must be >= 4")
        if self.vision_radius < 0:
            raise ValueError("vision_radius must be >= 0")
        if self.max_players < 1:
            raise ValueError("max_players must be >= 1")
        if self.disconnect_policy not in DISCONNECT_POLICIES:
            raise ValueError(f"Unknown disconnect_policy: {self.disconnect_policy!r}")
        if self.turn_timeout_seconds is not None and self.turn_timeout_seconds <= 0:
            raise ValueError("turn_timeout_seconds must be > 0 when set")
        if self.chat_history_limit < 1:
            raise ValueError("chat_history_limit must be >= 1")

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    # ------------------------ Loading & Overrides ------------------------
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        allowed = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - allowed
        if unknown:
            logger.warning("Ignoring unknown session config keys: %s", sorted(unknown))
        filtered = {k: v for k, v in data.items() if k in allowed}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        mapping = {
            "DELVE_BOARD_SIZE": ("board_size", int),
            "DELVE_VISION_RADIUS": ("vision_radius", int),
            "DELVE_MAX_PLAYERS": ("max_players", int),
            "DELVE_ENFORCE_CAPACITY": ("enforce_capacity", _as_bool),
            "DELVE_DISCONNECT_POLICY": ("disconnect_policy", str),
            "DELVE_TURN_TIMEOUT": ("turn_timeout_seconds", _optional_float),
            "DELVE_STICKY_FOG": ("sticky_fog", _as_bool),
            "DELVE_ROUND_ON_WRAP": ("advance_round_on_wrap", _as_bool),
            "DELVE_CHAT_HISTORY": ("chat_history_limit", int),
        }
        out: Dict[str, Any] = {}
        for env_key, (field_name, caster) in mapping.items():
            if env_key in env and env[env_key] != "":
                try:
                    out[field_name] = caster(env[env_key])
                except ValueError as exc:
                    logger.error("Invalid env for %s=%r: %s", env_key, env[env_key], exc)
        return out

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Session config must be a mapping: {path}")
        # Allow either top-level keys or a [session] section
        if isinstance(data.get("session"), dict):
            data = data["session"]
        return data

    @classmethod
    def load(
        cls,
        path: Optional[Path] = None,
        *,
        env: Optional[Dict[str, str]] = None,
    ) -> "SessionConfig":
        """Build a config from defaults, an optional YAML file and the environment."""
        data: Dict[str, Any] = {}
        if path is not None:
            path = Path(path)
            if path.exists():
                data.update(cls._load_yaml(path))
                logger.info("Loaded session config from %s", path)
            else:
                logger.warning("Session config file not found: %s", path)
        data.update(cls.from_env(env))
        cfg = cls.from_dict(data)
        logger.debug("Session config resolved: %s", cfg)
        return cfg

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump({"session": self.as_dict()}, f, sort_keys=False)
        logger.info("Saved session config to %s", path)


__all__ = [
    "SessionConfig",
    "DISCONNECT_REMOVE",
    "DISCONNECT_KEEP",
    "DISCONNECT_POLICIES",
]
