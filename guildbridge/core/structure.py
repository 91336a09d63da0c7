"""Server structure document: repository categories, channels and roles."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, TypeVar

from dotenv import dotenv_values, set_key, unset_key

from .errors import ConfigError, StructureConflict

LOGGER = logging.getLogger(__name__)

STRUCTURE_FILE = "discord-structure.json"
REPO_CATEGORY_MARKER = "📦"
DEFAULT_ROLE_PERMISSIONS = ["ViewChannel", "SendMessages", "ReadMessageHistory"]
READ_ONLY_EVERYONE = [
    {"role": "@everyone", "allow": ["ViewChannel", "ReadMessageHistory"], "deny": ["SendMessages"]}
]
_HEX_COLOR = re.compile(r"^#?[0-9A-Fa-f]{6}$")

T = TypeVar("T")
Mutator = Callable[[Dict[str, Any]], T]


@dataclass
class StructureDocument:
    data: Dict[str, Any]
    version: str

    @property
    def categories(self) -> List[Dict[str, Any]]:
        return self.data["categories"]

    @property
    def roles(self) -> List[Dict[str, Any]]:
        return self.data["roles"]


@dataclass(frozen=True)
class RepoSummary:
    name: str
    prefix: str
    private: bool
    channel_count: int


class StructureStore:
    """Whole-document read-modify-write with a single writer and a version check."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StructureDocument:
        raw = self._read_bytes()
        if raw is None:
            return StructureDocument(data={"categories": [], "roles": []}, version="")
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Invalid structure document at {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Structure document at {self._path} must be a JSON object")
        for key in ("categories", "roles"):
            value = data.setdefault(key, [])
            if not isinstance(value, list):
                raise ConfigError(f"'{key}' in {self._path} must be a list")
        return StructureDocument(data=data, version=_version_of(raw))

    async def mutate(self, mutator: Mutator[T]) -> T:
        """Apply `mutator` to a fresh copy of the document and persist it atomically."""
        async with self._lock:
            document = self.load()
            result = mutator(document.data)
            self._write(document)
            return result

    def _read_bytes(self) -> Optional[bytes]:
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigError(f"Failed to read {self._path}: {exc}") from exc

    def _write(self, document: StructureDocument) -> None:
        current = self._read_bytes()
        current_version = _version_of(current) if current is not None else ""
        if current_version != document.version:
            raise StructureConflict(
                f"{self._path.name} was modified by another writer; reload and try again."
            )
        payload = json.dumps(document.data, indent=2, ensure_ascii=False) + "\n"
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigError(f"Failed to write {self._path}: {exc}") from exc
        LOGGER.info("Saved structure document %s", self._path)


def _version_of(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


def repo_prefix(repo_name: str) -> str:
    """Single-token channel prefix: "Remote-Coder" -> "remotecoder"."""
    return re.sub(r"[^a-z0-9]", "", repo_name.lower())


def _channel_prefix(category: Mapping[str, Any]) -> str:
    channels = category.get("channels") or []
    first = str(channels[0].get("name", "")) if channels else ""
    return first.split("-", 1)[0]


def _matches_prefix(category: Mapping[str, Any], prefix: str) -> bool:
    return prefix in repo_prefix(str(category.get("name", ""))) or _channel_prefix(category) == prefix


def build_repo_category(repo_name: str, private: bool) -> Dict[str, Any]:
    prefix = repo_prefix(repo_name)
    category: Dict[str, Any] = {
        "name": f"{REPO_CATEGORY_MARKER} {repo_name}",
        "description": "Private Project" if private else "Public Project",
        "channels": [
            {"name": f"{prefix}-general", "type": "text", "topic": f"General discussion about {repo_name}"},
            {
                "name": f"{prefix}-feature-requests",
                "type": "text",
                "topic": f"Request features for {repo_name} - Tag the bot to create GitHub issues",
            },
            {
                "name": f"{prefix}-bug-reports",
                "type": "text",
                "topic": "Report bugs - Tag the bot to create GitHub issues",
            },
            {
                "name": f"{prefix}-commits",
                "type": "text",
                "topic": "Automated commit feed from GitHub",
                "permissions": [dict(p) for p in READ_ONLY_EVERYONE],
            },
            {
                "name": f"{prefix}-releases",
                "type": "text",
                "topic": "Automated release announcements from GitHub",
                "permissions": [dict(p) for p in READ_ONLY_EVERYONE],
            },
            {
                "name": f"{prefix}-discussions",
                "type": "text",
                "topic": f"Community discussions about {repo_name}",
            },
        ],
    }
    if private:
        category["permissions"] = [{"role": "@everyone", "deny": ["ViewChannel"]}]
    return category


def add_repo_category(data: Dict[str, Any], repo_name: str, private: bool) -> Dict[str, Any]:
    prefix = repo_prefix(repo_name)
    if not prefix:
        raise ConfigError("Repository name must contain letters or digits.")
    if any(_matches_prefix(cat, prefix) for cat in data["categories"]):
        raise ConfigError(f'A category for "{repo_name}" already exists.')
    category = build_repo_category(repo_name, private)
    data["categories"].append(category)
    return category


def remove_repo_category(data: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    needle = repo_prefix(prefix)
    if needle:
        for index, cat in enumerate(data["categories"]):
            if _matches_prefix(cat, needle):
                return data["categories"].pop(index)
    raise ConfigError(f'Repository with prefix "{prefix.lower()}" not found.')


def category_prefix(category: Mapping[str, Any]) -> str:
    """Prefix the category's channels route under."""
    return _channel_prefix(category) or repo_prefix(str(category.get("name", "")))


def add_role(
    data: Dict[str, Any],
    name: str,
    color: str,
    mentionable: bool = False,
    hoist: bool = False,
) -> Dict[str, Any]:
    if not _HEX_COLOR.match(color):
        raise ConfigError(f'Invalid color "{color}". Use a hex code such as #FF0000.')
    if any(role.get("name") == name for role in data["roles"]):
        raise ConfigError(f'Role "{name}" already exists in configuration.')
    role = {
        "name": name,
        "color": color if color.startswith("#") else f"#{color}",
        "permissions": list(DEFAULT_ROLE_PERMISSIONS),
        "mentionable": mentionable,
        "hoist": hoist,
    }
    data["roles"].append(role)
    return role


def list_repositories(document: StructureDocument) -> List[RepoSummary]:
    summaries = []
    for cat in document.categories:
        name = str(cat.get("name", ""))
        if REPO_CATEGORY_MARKER not in name:
            continue
        private = any(
            perm.get("role") == "@everyone" and perm.get("deny") for perm in cat.get("permissions") or []
        )
        summaries.append(
            RepoSummary(
                name=name,
                prefix=_channel_prefix(cat),
                private=private,
                channel_count=len(cat.get("channels") or []),
            )
        )
    return summaries


def register_repo_env(
    env_path: Path,
    repo_name: str,
    environ: Optional[MutableMapping[str, str]] = None,
) -> str:
    """Persist `<PREFIX>_REPO=<name>` to the .env file and the live environment."""
    key = f"{repo_prefix(repo_name).upper()}_REPO"
    environ = os.environ if environ is None else environ
    existing: Mapping[str, Optional[str]] = dotenv_values(env_path) if env_path.exists() else {}
    if key not in existing:
        env_path.parent.mkdir(parents=True, exist_ok=True)
        env_path.touch(exist_ok=True)
        set_key(str(env_path), key, repo_name, quote_mode="never")
        LOGGER.info("Registered %s in %s", key, env_path)
    environ.setdefault(key, existing.get(key) or repo_name)
    return key


def unregister_repo_env(
    env_path: Path,
    prefix: str,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Optional[str]:
    """Drop `<PREFIX>_REPO` from the .env file and the live environment.

    Returns the removed key, or None when neither held it.
    """
    key = f"{prefix.upper()}_REPO"
    environ = os.environ if environ is None else environ
    removed = environ.pop(key, None) is not None
    if env_path.exists() and key in dotenv_values(env_path):
        unset_key(str(env_path), key)
        removed = True
    if not removed:
        return None
    LOGGER.info("Unregistered %s from %s", key, env_path)
    return key
