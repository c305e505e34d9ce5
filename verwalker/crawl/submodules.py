"""Submodule parsing and resolution to pinned commits."""

from __future__ import annotations

import logging
import re

from verwalker.crawl.tree_cache import TreeCache
from verwalker.vcs.models import Submodule

logger = logging.getLogger(__name__)

_SECTION_RE = re.compile(r'^\[\s*submodule\s+"(?P<name>[^"]*)"\s*\]$')
_OPTION_RE = re.compile(r"^(?P<key>[A-Za-z][\w.-]*)\s*=\s*(?P<value>.*)$")


def parse_gitmodules(text: str) -> list[Submodule]:
    """Parse the ``[submodule "name"]`` sections of a .gitmodules file.

    Sections without both a path and a url are skipped.
    """
    submodules: list[Submodule] = []
    current: dict[str, str] | None = None

    def _flush() -> None:
        if current is not None and current.get("path") and current.get("url"):
            submodules.append(Submodule(**current))

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#;":
            continue
        section = _SECTION_RE.match(stripped)
        if section:
            _flush()
            current = {"name": section.group("name")}
            continue
        if stripped.startswith("["):
            # some other section type
            _flush()
            current = None
            continue
        option = _OPTION_RE.match(stripped)
        if option and current is not None:
            key = option.group("key").lower()
            if key in ("path", "url"):
                current[key] = option.group("value").strip().strip('"')
    _flush()
    return submodules


class SubmoduleResolver:
    """Turns submodule declarations into synthetic dependency entries.

    Each submodule path is walked through the repository's trees down to
    its gitlink entry; the entry's sha is the pinned commit.
    """

    async def resolve(
        self, trees: TreeCache, root_tree_sha: str, submodules: list[Submodule]
    ) -> dict[str, str]:
        deps: dict[str, str] = {}
        for sub in submodules:
            entry = await trees.resolve(root_tree_sha, sub.path, "commit")
            if entry is None:
                logger.info(
                    "%s: could not resolve submodule %s", trees.repo_id, sub.path
                )
                continue
            name = sub.path.rstrip("/").rsplit("/", 1)[-1]
            deps[name] = f"{sub.url}#{entry.sha}"
        return deps
