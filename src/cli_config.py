"""Configuration file loading for the CLI.

A config file (YAML, YML or JSON) is looked up in priority order:
1. ``--config`` argument
2. NAETHER_CONFIG environment variable
3. ``naether.yml`` / ``naether.yaml`` / ``naether.json`` in the working directory

Recognized keys::

    local_repository: /path/to/repo
    clear_default_repositories: true
    repositories:
      - url: https://repo.example.com/maven2/
        id: example            # optional, derived from the URL otherwise
        username: deployer     # optional
        password: secret       # optional
    properties:
      java.version: "17"
    download_workers: 8
    log_level: DEBUG

CLI arguments override file values.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants
from errors import ConfigError
from repository.remote import Authentication

logger = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """One ``repositories`` entry."""

    url: str
    id: Optional[str] = None
    layout: str = Constants.DEFAULT_LAYOUT
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class NaetherConfig:
    """Parsed configuration; every field is optional."""

    local_repository: Optional[str] = None
    repositories: List[RepositoryConfig] = field(default_factory=list)
    clear_default_repositories: bool = False
    properties: Dict[str, str] = field(default_factory=dict)
    download_workers: Optional[int] = None
    log_level: Optional[str] = None
    source: Optional[str] = None


def find_config_file(explicit: Optional[str] = None) -> Optional[str]:
    """Return the config path to use, or None when there is none."""
    if explicit:
        return explicit
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        return env_path
    for name in Constants.CONFIG_FILE_NAMES:
        if os.path.isfile(name):
            return name
    return None


def _read_mapping(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")
    return data


def parse_config(data: Dict[str, Any], source: Optional[str] = None) -> NaetherConfig:
    """Validate a raw mapping into a NaetherConfig.

    Raises:
        ConfigError: on unknown types for known keys.
    """
    repositories = []
    for entry in data.get("repositories") or []:
        if isinstance(entry, str):
            entry = {"url": entry}
        if not isinstance(entry, dict) or not entry.get("url"):
            raise ConfigError(f"Invalid repository entry in {source or 'config'}: {entry!r}")
        repositories.append(RepositoryConfig(
            url=str(entry["url"]),
            id=entry.get("id"),
            layout=entry.get("layout") or Constants.DEFAULT_LAYOUT,
            username=entry.get("username"),
            password=entry.get("password"),
        ))

    properties = data.get("properties") or {}
    if not isinstance(properties, dict):
        raise ConfigError(f"'properties' in {source or 'config'} must be a mapping")

    workers = data.get("download_workers")
    if workers is not None:
        try:
            workers = int(workers)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"'download_workers' must be an integer, got {workers!r}") from exc
        if workers < 1:
            raise ConfigError("'download_workers' must be at least 1")

    return NaetherConfig(
        local_repository=data.get("local_repository"),
        repositories=repositories,
        clear_default_repositories=bool(data.get("clear_default_repositories", False)),
        properties={str(k): str(v) for k, v in properties.items()},
        download_workers=workers,
        log_level=data.get("log_level"),
        source=source,
    )


def load_config(explicit: Optional[str] = None) -> NaetherConfig:
    """Find and parse the configuration; an absent optional file yields defaults."""
    path = find_config_file(explicit)
    if path is None:
        return NaetherConfig()
    logger.debug("Loading config from %s", path)
    return parse_config(_read_mapping(path), source=path)


def apply_config(naether, config: NaetherConfig) -> None:
    """Apply a NaetherConfig to a Naether facade."""
    if config.local_repository:
        naether.local_repo_path = config.local_repository
    if config.clear_default_repositories:
        naether.clear_remote_repositories()
    for repo in config.repositories:
        if repo.id:
            auth = Authentication(repo.username, repo.password or "") if repo.username else None
            naether.registry.add_remote_repository(repo.id, repo.layout, repo.url, auth=auth)
        else:
            naether.add_remote_repository_by_url(repo.url, repo.username, repo.password)
    if config.download_workers:
        naether.resolver.download_workers = config.download_workers
