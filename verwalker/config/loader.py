"""YAML config loading.

Files are searched in order: an explicit ``--config`` path, ``./verwalker.yaml``,
then ``~/.verwalker/config.yaml``. The first non-empty file is used as is;
files are never merged. String values may reference environment variables as
``${NAME}`` or ``${NAME:-fallback}``.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import VerwalkerConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG = "verwalker.yaml"
USER_CONFIG = Path(".verwalker") / "config.yaml"

_ENV_REF = re.compile(r"\$\{(?P<name>\w+)(?::-(?P<fallback>[^}]*))?\}")


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    paths = [Path(PROJECT_CONFIG), Path.home() / USER_CONFIG]
    if cli_path:
        paths.insert(0, Path(cli_path))
    return paths


def _read_mapping(path: Path) -> dict[str, Any] | None:
    """Parsed top-level mapping of a YAML file, or None if the file is empty."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None or isinstance(raw, dict):
        return raw
    raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")


def load_config(cli_path: str | None = None) -> VerwalkerConfig:
    """Load the first usable config file, or the defaults when there is none.

    An explicit path that does not exist is an error rather than a miss.
    """
    if cli_path and not Path(cli_path).is_file():
        raise ValueError(f"Config file {cli_path} not found")

    for path in config_search_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_mapping(path)
        if raw is None:
            logger.debug("skipping empty config %s", path)
            continue
        try:
            config = VerwalkerConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("loaded config from %s", path)
        return config

    return VerwalkerConfig()


def _substitute(match: re.Match[str]) -> str:
    value = os.environ.get(match["name"])
    if value is None:
        return match["fallback"] or ""
    return value


def _expand_env_vars(obj: Any) -> Any:
    """Expand ``${NAME}`` references in every string of a parsed YAML tree."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    if isinstance(obj, str):
        return _ENV_REF.sub(_substitute, obj)
    return obj


# Default YAML template for `verwalker config init`
DEFAULT_CONFIG_TEMPLATE = """\
# verwalker.yaml

# Hosting API
vcs:
  provider: "github"
  api_url: "https://api.github.com"
  user_env: "GITHUB_USER"       # env var holding the account login
  key_env: "GITHUB_KEY"         # env var holding the password or token
  timeout: 30
  retries: 0                    # 0 = fail the run on the first transport error

# Crawl
crawl:
  accounts:
    - "joyent"
  per_page: 100
  branch: "master"
  manifest_path: "package.json"
  build_script_path: "Makefile"
  submodules_path: ".gitmodules"

# Rate limit guard
guard:
  interval: 3.0                 # seconds between quota polls / checkpoints
  low_water_ratio: 0.02         # stop early below remaining/limit

# Output
output:
  index_file: "verwalker-index.json"

# Logging
log_level: "info"               # debug | info | warn | error
"""
