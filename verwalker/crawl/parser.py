"""Record parser: manifest bytes + build script -> PackageRecord."""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from verwalker.index.models import PackageRecord

logger = logging.getLogger(__name__)

# NODE_PREBUILT_VERSION=v0.10.26, NODE_PREBUILT_IMAGE ?= <uuid>, ...
_BUILD_VAR_RE = re.compile(
    r"^\s*NODE_PREBUILT_(?P<key>[A-Z0-9_]+?)\s*"
    r"(?:::=|:=|\?=|\+=|!=|=)\s*"
    r"(?P<value>[^#]*?)\s*(?:#.*)?$"
)

# build variable key -> PackageRecord field
BUILD_FIELDS = {
    "VERSION": "node_version",
    "IMAGE": "base_image",
}


class ManifestParseError(ValueError):
    """The manifest is not a usable package description."""

    def __init__(self, repository: str, reason: str) -> None:
        self.repository = repository
        super().__init__(f"bad manifest in {repository}: {reason}")


def parse_build_vars(text: str) -> dict[str, str]:
    """Collect NODE_PREBUILT_* assignments; the first occurrence of a key wins.

    An empty assignment still counts as the first occurrence, so a later
    line cannot override it.
    """
    found: dict[str, str] = {}
    for line in text.splitlines():
        m = _BUILD_VAR_RE.match(line)
        if m is None:
            continue
        found.setdefault(m.group("key"), m.group("value"))
    return found


class RecordParser:
    """Builds PackageRecords from fetched files.

    Submodule-derived dependencies overwrite declared ones of the same name.
    """

    def parse(
        self,
        repository: str,
        manifest: bytes,
        build_script: bytes | None = None,
        submodule_deps: dict[str, str] | None = None,
    ) -> PackageRecord:
        try:
            pkg = json.loads(manifest.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ManifestParseError(repository, str(e)) from e
        if not isinstance(pkg, dict):
            raise ManifestParseError(repository, "top level is not an object")

        dependencies = pkg.get("dependencies") or {}
        if not isinstance(dependencies, dict):
            raise ManifestParseError(repository, "dependencies is not an object")
        dependencies = {k: str(v) for k, v in dependencies.items()}
        dependencies.update(submodule_deps or {})

        fields: dict[str, str] = {}
        if build_script:
            build_vars = parse_build_vars(build_script.decode("utf-8", errors="replace"))
            for key, field_name in BUILD_FIELDS.items():
                if build_vars.get(key):
                    fields[field_name] = build_vars[key]

        version = pkg.get("version")
        try:
            return PackageRecord(
                repository=repository,
                name=pkg.get("name"),
                version=None if version is None else str(version),
                dependencies=dependencies,
                **fields,
            )
        except ValidationError as e:
            raise ManifestParseError(repository, str(e)) from e
