"""Configuration loader."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .permissions import DEFAULT_PRIVILEGED_ROLES
from .structure import STRUCTURE_FILE

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path("~/.guildbridge").expanduser()
CONFIG_DIR_ENV = "GUILDBRIDGE_CONFIG_DIR"
ENV_FILE_NAME = ".env"
SETTINGS_FILE = "settings.yaml"
DEFAULT_COMMAND = ["claude", "--print"]
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_PREAMBLE = (
    "[Context: Software development with focus on game development, Discord bots, and web applications]\n"
    "You are a helpful software development expert. Provide concise, actionable advice."
)


@dataclass
class Config:
    discord_token: str
    config_dir: Path
    github_token: Optional[str] = None
    github_owner: Optional[str] = None
    ai_command: List[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    ai_timeout: float = DEFAULT_TIMEOUT_SECONDS
    ai_preamble: str = DEFAULT_PREAMBLE
    transcript_path: Optional[Path] = None
    privileged_roles: List[str] = field(default_factory=lambda: list(DEFAULT_PRIVILEGED_ROLES))
    approval_window: timedelta = timedelta(hours=24)
    history_limit: int = 10
    max_channels: int = 200

    @property
    def env_path(self) -> Path:
        return self.config_dir / ENV_FILE_NAME

    @property
    def structure_path(self) -> Path:
        return self.config_dir / STRUCTURE_FILE


def resolve_config_dir(config_dir: Path | str | None) -> Path:
    """Resolve and validate the directory containing .env, settings and structure files."""
    raw = config_dir or os.getenv(CONFIG_DIR_ENV)
    target = (Path(raw).expanduser() if raw else DEFAULT_CONFIG_DIR).resolve()
    if not target.exists():
        raise ConfigError(
            f"Config directory {target} does not exist. "
            f"Create it and add {ENV_FILE_NAME} (and optionally {SETTINGS_FILE} and {STRUCTURE_FILE})."
        )
    if not target.is_dir():
        raise ConfigError(f"Config directory {target} is not a directory")
    return target


def load_config(config_dir: Path | str | None = None) -> Config:
    """Load configuration from the provided or default directory."""
    root = resolve_config_dir(config_dir)
    _load_env_file(root / ENV_FILE_NAME)
    settings = _load_settings(root / SETTINGS_FILE)

    ai_cli = _section(settings, "ai_cli")
    approval = _section(settings, "approval")
    conversation = _section(settings, "conversation")

    command = ai_cli.get("command", DEFAULT_COMMAND)
    if isinstance(command, str):
        command = command.split()
    if not isinstance(command, list) or not command:
        raise ConfigError("ai_cli.command must be a non-empty list")

    transcript_raw = ai_cli.get("transcript")
    transcript_path = None
    if transcript_raw:
        transcript_path = Path(transcript_raw).expanduser()
        if not transcript_path.is_absolute():
            transcript_path = root / transcript_path

    roles = settings.get("privileged_roles", list(DEFAULT_PRIVILEGED_ROLES))
    if not isinstance(roles, list):
        raise ConfigError("privileged_roles must be a list of role names")

    return Config(
        discord_token=_require_env("DISCORD_TOKEN"),
        config_dir=root,
        github_token=os.getenv("GITHUB_TOKEN") or None,
        github_owner=_github_owner(),
        ai_command=[str(part) for part in command],
        ai_timeout=_positive_number(ai_cli.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS), "ai_cli.timeout_seconds"),
        ai_preamble=str(ai_cli.get("preamble") or DEFAULT_PREAMBLE).strip(),
        transcript_path=transcript_path,
        privileged_roles=[str(role) for role in roles],
        approval_window=timedelta(
            hours=_positive_number(approval.get("window_hours", 24), "approval.window_hours")
        ),
        history_limit=int(_positive_number(conversation.get("history_limit", 10), "conversation.history_limit")),
        max_channels=int(_positive_number(conversation.get("max_channels", 200), "conversation.max_channels")),
    )


def _load_env_file(path: Path) -> None:
    if not path.exists():
        LOGGER.warning("No .env file found at %s; relying on shell environment.", path)
        return
    load_dotenv(dotenv_path=path, override=False)


def _load_settings(path: Path) -> Dict[str, Any]:
    if not path.exists():
        LOGGER.info("No %s found at %s; using defaults.", SETTINGS_FILE, path)
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {SETTINGS_FILE} structure at {path}")
    return data


def _section(settings: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = settings.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} in {SETTINGS_FILE} must be a mapping")
    return value


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigError(f"{name} is not set")
    return value


def _github_owner() -> Optional[str]:
    owner = os.getenv("GITHUB_OWNER")
    if owner:
        return owner
    legacy = os.getenv("GITHUB_REPO")
    if legacy and "/" in legacy:
        return legacy.split("/", 1)[0]
    return None


def _positive_number(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"{name} must be positive")
    return number
